# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no imports from other project modules.

import math
from typing import Iterable, Tuple


EARTH_RADIUS_M = 6_371_000.0
METRES_PER_MINUTE = 83.33      # 5 km/h, used for display estimates only


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lng1: Origin in decimal degrees.
        lat2, lng2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def polyline_length(points: Iterable[Tuple[float, float]]) -> float:
    """Cumulative haversine length of a sequence of (lat, lng) pairs."""
    total = 0.0
    prev = None
    for lat, lng in points:
        if prev is not None:
            total += haversine_distance(prev[0], prev[1], lat, lng)
        prev = (lat, lng)
    return total


def segment_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Planar heading of the segment 1 -> 2 in degrees, measured as
    atan2(Δlng, Δlat). North is 0, east is 90.
    """
    return math.degrees(math.atan2(lng2 - lng1, lat2 - lat1))


def normalize_angle(angle: float) -> float:
    """Fold an angle in degrees into the half-open range (-180, 180]."""
    angle = math.fmod(angle, 360.0)
    if angle > 180:
        angle -= 360
    elif angle <= -180:
        angle += 360
    return angle


def turn_angle(
    prev: Tuple[float, float],
    current: Tuple[float, float],
    nxt: Tuple[float, float],
) -> float:
    """
    Signed change of heading at `current` in degrees.

    Positive values turn right, negative values turn left.
    """
    a1 = segment_angle(prev[0], prev[1], current[0], current[1])
    a2 = segment_angle(current[0], current[1], nxt[0], nxt[1])
    return normalize_angle(a2 - a1)


def format_distance(meters: float) -> str:
    """'250 m' below one kilometre, '1.3 km' above."""
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def format_walking_time(meters: float) -> str:
    """Rounded-up walking time estimate for display."""
    minutes = math.ceil(meters / METRES_PER_MINUTE)
    if minutes < 1:
        return "< 1 min"
    if minutes == 1:
        return "1 min"
    return f"{minutes} min"
