import logging
import math
import threading

import pytest

import campus_nav.router.navigator as navigator_module
from campus_nav.router.direct_route import direct_route
from campus_nav.router.models import (
    ExternalRouteError,
    FailureReason,
    RoutePoint,
    RouteSource,
    UnknownLocationError,
)
from campus_nav.router.nav_config import NavConfig
from campus_nav.router.nav_logger import DiagnosticsLog
from campus_nav.router.navigator import NavigationSystem, as_point
from campus_nav.router.path_graph import RoutingGraph, build_graph, load_graph

GATE = RoutePoint(21.103063, 79.004020)
LIBRARY = RoutePoint(21.101417, 79.007840)


class StubProvider:
    """Stands in for OSRMClient."""

    def __init__(self, error=None, gate=None):
        self.error = error
        self.gate = gate
        self.calls = []

    def fetch_route(self, origin, destination):
        self.calls.append((origin, destination))
        if self.gate is not None and origin == GATE:
            self.gate.wait(timeout=5)
        if self.error:
            raise self.error
        route = direct_route(origin.lat, origin.lng, destination.lat, destination.lng)
        route.steps[1].instruction = "External"
        return route


@pytest.fixture
def campus_graph():
    config = NavConfig()
    return load_graph(config.paths_file, config)


def test_graph_route_is_preferred(config, campus_graph):
    provider = StubProvider()
    nav = NavigationSystem(config, graph=campus_graph, external=provider)
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.GRAPH
    assert outcome.failures == []
    assert len(outcome.route.coordinates) > 2
    assert provider.calls == []


def test_empty_graph_falls_back_to_external(config):
    nav = NavigationSystem(config, graph=RoutingGraph(), external=StubProvider())
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.EXTERNAL
    assert outcome.failures == [FailureReason.NO_GRAPH_DATA]
    assert outcome.route.steps[1].instruction == "External"


@pytest.mark.parametrize("error", [ExternalRouteError("timeout"), RuntimeError("boom")])
def test_external_failure_falls_back_to_direct(config, error):
    nav = NavigationSystem(config, graph=RoutingGraph(), external=StubProvider(error=error))
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.DIRECT
    assert outcome.is_fallback
    assert outcome.failures == [FailureReason.NO_GRAPH_DATA, FailureReason.EXTERNAL_ROUTE_FAILURE]
    assert len(outcome.route.coordinates) == 2
    assert len(outcome.route.steps) == 3


def test_no_path_and_no_provider_gives_direct_route(config, campus_graph):
    # same junctions, no paths between them
    island = RoutingGraph()
    for node in campus_graph.nodes.values():
        island.add_node(node)
    nav = NavigationSystem(config, graph=island)
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.DIRECT
    assert outcome.failures == [FailureReason.NO_PATH_FOUND, FailureReason.EXTERNAL_DISABLED]


def test_external_first_consults_provider_before_graph(config, campus_graph):
    config.external_first = True
    provider = StubProvider()
    nav = NavigationSystem(config, graph=campus_graph, external=provider)
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.EXTERNAL
    assert len(provider.calls) == 1


def test_external_first_failure_uses_graph(config, campus_graph):
    config.external_first = True
    nav = NavigationSystem(config, graph=campus_graph, external=StubProvider(error=ExternalRouteError("503")))
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.GRAPH
    assert outcome.failures == [FailureReason.EXTERNAL_ROUTE_FAILURE]


def test_enabled_config_creates_osrm_client(config):
    config.external_enabled = True
    config.osrm_base_url = "http://osrm.test"
    nav = NavigationSystem(config, graph=RoutingGraph())
    assert nav._external.base_url == "http://osrm.test"
    assert nav._external.profile == "foot"


def test_route_between_accepts_plain_coordinates(config, campus_graph):
    nav = NavigationSystem(config, graph=campus_graph)
    from_tuple = nav.route_between((GATE.lat, GATE.lng), {"lat": LIBRARY.lat, "lng": LIBRARY.lng})
    from_points = nav.route_between(GATE, LIBRARY)
    assert from_tuple == from_points
    assert abs(from_points.duration - from_points.distance / 1.4) <= 1


def test_as_point():
    assert as_point(GATE) is GATE
    assert as_point((1, 2)) == RoutePoint(1.0, 2.0)
    assert as_point({"lat": 1, "lng": 2}) == RoutePoint(1.0, 2.0)


def test_route_to_location_ends_at_road_anchor(config):
    nav = NavigationSystem(config)
    route = nav.route_to_location(GATE, "main-canteen")
    assert route.steps[-1].point == RoutePoint(21.102479, 79.007738)
    assert route.coordinates[-1] == RoutePoint(21.102479, 79.007738)


def test_route_to_unknown_location(config):
    nav = NavigationSystem(config)
    with pytest.raises(UnknownLocationError):
        nav.route_to_location(GATE, "nowhere")


def test_graph_is_built_once_under_concurrency(config, monkeypatch):
    calls = []
    real_load = navigator_module.load_graph

    def counting_load(path, cfg):
        calls.append(path)
        return real_load(path, cfg)

    monkeypatch.setattr(navigator_module, "load_graph", counting_load)
    nav = NavigationSystem(config)
    barrier = threading.Barrier(8)
    seen = []

    def worker():
        barrier.wait()
        seen.append(nav.graph)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert all(g is seen[0] for g in seen)
    assert seen[0].node_count == 33


def test_outcomes_are_recorded_in_diagnostics(config, campus_graph):
    diagnostics = DiagnosticsLog(config)
    nav = NavigationSystem(config, graph=campus_graph, diagnostics=diagnostics)
    nav.route_between(GATE, LIBRARY)
    nav.route_between(GATE, RoutePoint(0.0, 0.0))

    events = diagnostics.read_events()
    assert [e["source"] for e in events] == ["graph", "graph"]
    assert events[0]["failures"] == []
    assert "coordinates" not in events[0]


def test_missing_paths_file_still_routes(config):
    config.paths_file = "/nonexistent/paths.geojson"
    nav = NavigationSystem(config)
    outcome = nav.plan_route(GATE, LIBRARY)
    assert outcome.source is RouteSource.DIRECT
    assert FailureReason.NO_GRAPH_DATA in outcome.failures


# ---------------------------------------------------------------------------
# Async requests
# ---------------------------------------------------------------------------

def test_submit_route_last_request_wins(config, campus_graph):
    config.external_first = True
    gate = threading.Event()
    nav = NavigationSystem(config, graph=campus_graph, external=StubProvider(gate=gate))
    delivered = []

    first = nav.submit_route(GATE, LIBRARY, delivered.append)       # blocks in the provider
    second = nav.submit_route(LIBRARY, GATE, delivered.append)
    second.result(timeout=5)
    gate.set()
    if not first.cancelled():
        first.result(timeout=5)
    nav.close()

    assert len(delivered) == 1
    assert delivered[0].route.coordinates[0] == LIBRARY


def test_cancel_pending_suppresses_callback(config, campus_graph):
    config.external_first = True
    gate = threading.Event()
    nav = NavigationSystem(config, graph=campus_graph, external=StubProvider(gate=gate))
    delivered = []

    future = nav.submit_route(GATE, LIBRARY, delivered.append)
    nav.cancel_pending()
    gate.set()
    if not future.cancelled():
        future.result(timeout=5)
    nav.close()

    assert delivered == []


def test_submit_route_delivers_single_request(config, campus_graph):
    delivered = []
    with NavigationSystem(config, graph=campus_graph) as nav:
        nav.submit_route(GATE, LIBRARY, delivered.append).result(timeout=5)
    assert len(delivered) == 1
    assert delivered[0].source is RouteSource.GRAPH


def test_callback_may_submit_the_next_request(config, campus_graph):
    delivered = []
    done = threading.Event()

    def on_route(outcome):
        delivered.append(outcome)
        if len(delivered) == 1:
            nav.submit_route(LIBRARY, GATE, on_route)
        else:
            done.set()

    nav = NavigationSystem(config, graph=campus_graph)
    nav.submit_route(GATE, LIBRARY, on_route)
    assert done.wait(timeout=5)
    nav.close()

    assert [o.route.coordinates[0] for o in delivered] == [GATE, LIBRARY]


def test_callback_errors_are_logged(config, campus_graph, caplog):
    def explode(outcome):
        raise RuntimeError("ui gone")

    with caplog.at_level(logging.ERROR, logger="campus_nav.router.navigator"):
        with NavigationSystem(config, graph=campus_graph) as nav:
            nav.submit_route(GATE, LIBRARY, explode).result(timeout=5)

    assert "failed" in caplog.text
    assert "ui gone" in caplog.text


def test_planning_errors_are_logged_not_delivered(config, campus_graph, monkeypatch, caplog):
    delivered = []
    nav = NavigationSystem(config, graph=campus_graph)

    def broken(origin, destination):
        raise RuntimeError("graph corrupted")

    monkeypatch.setattr(nav, "plan_route", broken)
    with caplog.at_level(logging.ERROR, logger="campus_nav.router.navigator"):
        future = nav.submit_route(GATE, LIBRARY, delivered.append)
        with pytest.raises(RuntimeError):
            future.result(timeout=5)
        nav.close()

    assert delivered == []
    assert "graph corrupted" in caplog.text


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("bad", [
    RoutePoint(math.nan, 79.0),
    (21.1, math.inf),
    {"lat": -math.inf, "lng": 79.0},
])
def test_non_finite_coordinates_are_rejected(bad):
    with pytest.raises(ValueError, match="finite"):
        as_point(bad)


def test_route_between_rejects_nan_before_routing(config, campus_graph):
    diagnostics = DiagnosticsLog(config)
    nav = NavigationSystem(config, graph=campus_graph, external=StubProvider(), diagnostics=diagnostics)
    with pytest.raises(ValueError, match="finite"):
        nav.route_between(RoutePoint(math.nan, 79.0), LIBRARY)
    with pytest.raises(ValueError):
        nav.route_to_location((21.1, math.inf), "library")
    assert diagnostics.read_events() == []


def test_route_over_multi_vertex_segments_stays_on_graph(config):
    # a single three-vertex polyline leaves its middle vertex without edges;
    # the same road split into two-point segments routes from that vertex
    graph = build_graph([
        [RoutePoint(0, 0), RoutePoint(0, 0.001)],
        [RoutePoint(0, 0.001), RoutePoint(0.001, 0.001)],
        [RoutePoint(0.001, 0.001), RoutePoint(0.002, 0.001)],
    ])
    outcome = NavigationSystem(config, graph=graph).plan_route((0, 0.001), (0.002, 0.001))
    assert outcome.source is RouteSource.GRAPH
    assert outcome.route.coordinates == [RoutePoint(0, 0.001), RoutePoint(0.001, 0.001), RoutePoint(0.002, 0.001)]
