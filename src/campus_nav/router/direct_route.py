# direct_route.py
# Straight-line fallback used when neither the graph nor the external
# provider can produce a route. Always succeeds.

from .geo_utils import haversine_distance
from .models import Maneuver, Route, RoutePoint, RouteStep
from .nav_config import WALKING_SPEED_MS


def direct_route(
    from_lat: float,
    from_lng: float,
    to_lat: float,
    to_lng: float,
    walking_speed_ms: float = WALKING_SPEED_MS,
) -> Route:
    """Two-point route with depart / walk towards destination / arrive steps."""
    origin = RoutePoint(from_lat, from_lng)
    destination = RoutePoint(to_lat, to_lng)
    distance = haversine_distance(from_lat, from_lng, to_lat, to_lng)
    duration = distance / walking_speed_ms

    return Route(
        coordinates=[origin, destination],
        distance=round(distance),
        duration=round(duration),
        steps=[
            RouteStep(
                instruction="Start walking",
                distance=0,
                duration=0,
                point=origin,
                maneuver=Maneuver("depart"),
            ),
            RouteStep(
                instruction="Walk towards destination",
                distance=round(distance),
                duration=round(duration),
                point=destination,
            ),
            RouteStep(
                instruction="Arrive at your destination",
                distance=0,
                duration=0,
                point=destination,
                maneuver=Maneuver("arrive"),
            ),
        ],
    )
