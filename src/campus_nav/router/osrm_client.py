# osrm_client.py
# Optional external routing provider: talks to an OSRM server over HTTP
# and normalises its answer into a Route.
# Single attempt, bounded timeout, no retries. Every failure surfaces as
# ExternalRouteError so the caller can fall back.

import logging
from typing import List, Optional

import requests

from .models import ExternalRouteError, Maneuver, Route, RoutePoint, RouteStep

logger = logging.getLogger(__name__)


_TURN_TEXT = {
    "left": "Turn left",
    "right": "Turn right",
    "slight left": "Bear left",
    "slight right": "Bear right",
    "sharp left": "Take sharp left",
    "sharp right": "Take sharp right",
}


def format_osrm_instruction(maneuver: dict, street_name: Optional[str] = None) -> str:
    """Human-readable text for an OSRM maneuver object."""
    kind = maneuver.get("type")
    modifier = maneuver.get("modifier")

    if kind == "depart":
        text = f"Head {modifier}" if modifier else "Head"
    elif kind == "turn":
        text = _TURN_TEXT.get(modifier, "Continue")
    elif kind == "continue":
        text = "Continue straight"
    elif kind == "merge":
        text = f"Merge {modifier}" if modifier else "Merge"
    elif kind == "fork":
        if modifier == "left":
            text = "Keep left"
        elif modifier == "right":
            text = "Keep right"
        else:
            text = "Continue at fork"
    elif kind == "end of road":
        if modifier in ("left", "right"):
            text = f"Turn {modifier} at end of road"
        else:
            text = "Continue at end of road"
    elif kind == "arrive":
        text = "Arrive at your destination"
    else:
        # "new name" and anything OSRM adds later
        text = "Continue"

    if street_name and kind not in ("arrive", "depart"):
        text += f" onto {street_name}"
    return text


class OSRMClient:
    """
    OSRM /route client.

    Args:
        base_url: Server root, e.g. "https://router.project-osrm.org".
        profile:  OSRM profile ("foot" for walking).
        timeout:  Seconds to wait for a response before giving up.
        session:  Optional requests.Session (shared connection pool).
    """

    def __init__(
        self,
        base_url: str,
        profile: str = "foot",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ValueError("OSRM base URL must not be empty.")
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.session = session or requests.Session()

    def route_url(self, origin: RoutePoint, destination: RoutePoint) -> str:
        # OSRM wants lng,lat
        coords = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        return f"{self.base_url}/route/v1/{self.profile}/{coords}"

    def fetch_route(self, origin: RoutePoint, destination: RoutePoint) -> Route:
        """
        Ask OSRM for a walking route.

        Raises:
            ExternalRouteError: timeout, connection error, non-2xx status,
                a non-"Ok" code or a payload that cannot be parsed.
        """
        url = self.route_url(origin, destination)
        try:
            response = self.session.get(
                url,
                params={"overview": "full", "geometries": "geojson", "steps": "true"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as e:
            raise ExternalRouteError(f"OSRM request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ExternalRouteError(f"OSRM request failed: {e}") from e
        except ValueError as e:
            raise ExternalRouteError(f"OSRM returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or data.get("code") != "Ok" or not data.get("routes"):
            message = data.get("message", "no route") if isinstance(data, dict) else "bad payload"
            raise ExternalRouteError(f"OSRM error: {message}")

        try:
            return self._parse_route(data["routes"][0], origin, destination)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ExternalRouteError(f"Malformed OSRM route payload: {e!r}") from e

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _parse_route(self, route: dict, origin: RoutePoint, destination: RoutePoint) -> Route:
        coordinates = [
            RoutePoint(float(c[1]), float(c[0])) for c in route["geometry"]["coordinates"]
        ]
        if not coordinates:
            raise ValueError("empty geometry")

        steps: List[RouteStep] = [
            RouteStep(
                instruction="Start from your location",
                distance=0,
                duration=0,
                point=origin,
                maneuver=Maneuver("depart"),
            )
        ]

        legs = route.get("legs") or []
        if legs:
            for step in legs[0].get("steps", []):
                maneuver = step.get("maneuver")
                if not maneuver:
                    continue
                location = maneuver["location"]
                steps.append(RouteStep(
                    instruction=format_osrm_instruction(maneuver, step.get("name")),
                    distance=round(step["distance"]),
                    duration=round(step["duration"]),
                    point=RoutePoint(float(location[1]), float(location[0])),
                    maneuver=Maneuver(maneuver["type"], maneuver.get("modifier")),
                ))

        if steps[-1].maneuver.type != "arrive":
            steps.append(RouteStep(
                instruction="Arrive at your destination",
                distance=0,
                duration=0,
                point=destination,
                maneuver=Maneuver("arrive"),
            ))

        return Route(
            coordinates=coordinates,
            distance=round(route["distance"]),
            duration=round(route["duration"]),
            steps=steps,
        )
