# navigator.py
# Public entry point for the navigation system.
# Owns no routing logic; delegates everything to specialist modules and
# guarantees a renderable Route for every request.

import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Tuple, Union

from .direct_route import direct_route
from .models import (
    ExternalRouteError,
    FailureReason,
    Route,
    RouteOutcome,
    RoutePoint,
    RouteSource,
)
from .nav_config import NavConfig
from .nav_logger import DiagnosticsLog
from .osrm_client import OSRMClient
from .path_graph import RoutingGraph, load_graph
from .poi_finder import LocationDirectory
from .route_calculator import RouteCalculator

logger = logging.getLogger(__name__)

PointLike = Union[RoutePoint, Tuple[float, float], dict]


def as_point(value: PointLike) -> RoutePoint:
    """
    Accept a RoutePoint, a (lat, lng) pair or a {"lat", "lng"} mapping.

    Raises:
        ValueError: a coordinate is NaN or infinite.
    """
    if isinstance(value, RoutePoint):
        point = value
    elif isinstance(value, dict):
        point = RoutePoint.from_dict(value)
    else:
        lat, lng = value
        point = RoutePoint(float(lat), float(lng))
    if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
        raise ValueError(f"Coordinates must be finite, got ({point.lat}, {point.lng})")
    return point


class NavigationSystem:
    """
    High-level routing facade.

    Typical lifecycle:
        nav = NavigationSystem(NavConfig.from_env())
        route = nav.route_between(RoutePoint(21.1030, 79.0040), RoutePoint(21.1014, 79.0078))
        route = nav.route_to_location(my_position, "library")

    The road graph is loaded lazily on the first request and shared
    read-only afterwards.

    Args:
        config:      Optional NavConfig; defaults to NavConfig().
        graph:       Prebuilt RoutingGraph; loaded from config.paths_file if omitted.
        locations:   Prebuilt LocationDirectory; loaded from config CSVs if omitted.
        external:    External provider; an OSRMClient is created when
                     config.external_enabled is set and none is given.
        diagnostics: DiagnosticsLog; defaults to one writing into config.log_dir.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        graph: Optional[RoutingGraph] = None,
        locations: Optional[LocationDirectory] = None,
        external: Optional[OSRMClient] = None,
        diagnostics: Optional[DiagnosticsLog] = None,
    ) -> None:
        self.config = config or NavConfig()

        self._graph = graph
        self._locations = locations
        self._load_lock = threading.Lock()

        if external is None and self.config.external_enabled:
            external = OSRMClient(
                self.config.osrm_base_url,
                profile=self.config.osrm_profile,
                timeout=self.config.osrm_timeout_s,
            )
        self._external = external
        self._diagnostics = diagnostics or DiagnosticsLog(self.config)

        # Async requests: last request wins
        self._executor: Optional[ThreadPoolExecutor] = None
        # reentrant: a callback may submit the next request
        self._request_lock = threading.RLock()
        self._request_seq = 0
        self._pending: Optional[Future] = None

    # ------------------------------------------------------------------
    # Shared data (lazy, built at most once)
    # ------------------------------------------------------------------

    @property
    def graph(self) -> RoutingGraph:
        if self._graph is None:
            with self._load_lock:
                if self._graph is None:
                    self._graph = load_graph(self.config.paths_file, self.config)
        return self._graph

    @property
    def locations(self) -> LocationDirectory:
        if self._locations is None:
            with self._load_lock:
                if self._locations is None:
                    self._locations = LocationDirectory.from_csv(
                        self.config.locations_file, self.config.anchors_file
                    )
        return self._locations

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def route_between(self, origin: PointLike, destination: PointLike) -> Route:
        """
        Walking route between two coordinates. Never fails for finite input.

        Raises:
            ValueError: a coordinate is NaN or infinite.
        """
        return self.plan_route(origin, destination).route

    def route_to_location(self, origin: PointLike, location_id: str) -> Route:
        """
        Walking route to a named campus place, ending at its road anchor.

        Raises:
            UnknownLocationError: location_id is not a campus place.
        """
        anchor = self.locations.anchor_for(location_id)
        logger.info(f"Routing to '{location_id}' via anchor {anchor}")
        return self.route_between(origin, anchor)

    def plan_route(self, origin: PointLike, destination: PointLike) -> RouteOutcome:
        """
        Try the on-device graph, then the external provider, then a straight line.

        With config.external_first the provider is asked before the graph.

        Returns:
            RouteOutcome with the route, the source that produced it and
            the reasons earlier strategies were rejected.

        Raises:
            ValueError: a coordinate is NaN or infinite.
        """
        origin = as_point(origin)
        destination = as_point(destination)
        logger.info(f"Calculating route: {origin} → {destination}")

        strategies = [
            (RouteSource.GRAPH, self._try_graph),
            (RouteSource.EXTERNAL, self._try_external),
        ]
        if self.config.external_first:
            strategies.reverse()

        failures = []
        for source, strategy in strategies:
            route, reason = strategy(origin, destination)
            if route is not None:
                return self._finish(RouteOutcome(route, source, failures))
            failures.append(reason)

        route = direct_route(
            origin.lat, origin.lng, destination.lat, destination.lng,
            walking_speed_ms=self.config.walking_speed_ms,
        )
        return self._finish(RouteOutcome(route, RouteSource.DIRECT, failures))

    # ------------------------------------------------------------------
    # Async requests: last request wins
    # ------------------------------------------------------------------

    def submit_route(
        self,
        origin: PointLike,
        destination: PointLike,
        callback: Callable[[RouteOutcome], None],
    ) -> Future:
        """
        Plan a route on a worker thread.

        `callback` is called with the RouteOutcome only if no newer request
        was submitted (and cancel_pending() was not called) in the meantime.
        A still-queued earlier request is cancelled. Errors raised while
        planning or inside the callback are logged, not propagated.
        """
        with self._request_lock:
            self._request_seq += 1
            request_id = self._request_seq
            if self._pending is not None:
                self._pending.cancel()
            future = self._get_executor().submit(self.plan_route, origin, destination)
            self._pending = future

        def _deliver(f: Future) -> None:
            if f.cancelled():
                return
            # held across the callback so a newer submit cannot slip in between
            with self._request_lock:
                if request_id != self._request_seq:
                    logger.info(f"Discarding stale route request #{request_id}.")
                    return
                try:
                    callback(f.result())
                except Exception:
                    logger.exception(f"Route request #{request_id} failed.")

        future.add_done_callback(_deliver)
        return future

    def cancel_pending(self) -> None:
        """Drop the in-flight request; its callback will not fire."""
        with self._request_lock:
            self._request_seq += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "NavigationSystem":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="campus-nav")
        return self._executor

    def _try_graph(
        self, origin: RoutePoint, destination: RoutePoint
    ) -> Tuple[Optional[Route], Optional[FailureReason]]:
        return RouteCalculator(self.graph, self.config).calculate(origin, destination)

    def _try_external(
        self, origin: RoutePoint, destination: RoutePoint
    ) -> Tuple[Optional[Route], Optional[FailureReason]]:
        if self._external is None:
            return None, FailureReason.EXTERNAL_DISABLED
        try:
            return self._external.fetch_route(origin, destination), None
        except ExternalRouteError as e:
            logger.warning(f"External routing failed: {e}")
        except Exception:
            logger.exception("External routing raised an unexpected error.")
        return None, FailureReason.EXTERNAL_ROUTE_FAILURE

    def _finish(self, outcome: RouteOutcome) -> RouteOutcome:
        if outcome.failures:
            reasons = ", ".join(f.value for f in outcome.failures)
            logger.warning(f"Route served by {outcome.source.value} after: {reasons}")
        logger.info(
            f"Route ready ({outcome.source.value}): {outcome.route.distance} m, "
            f"{outcome.route.duration} s, {len(outcome.route.steps)} steps."
        )
        self._diagnostics.record(outcome)
        return outcome
