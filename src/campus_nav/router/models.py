# models.py
# Shared data structures, enums and exceptions used across all modules.

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoutePoint:
    """Immutable geographic coordinate."""
    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    @staticmethod
    def from_dict(d: dict) -> "RoutePoint":
        return RoutePoint(float(d["lat"]), float(d["lng"]))


# ---------------------------------------------------------------------------
# Route step
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Maneuver:
    type: str                      # "depart" | "turn" | "continue" | "arrive" | OSRM types
    modifier: Optional[str] = None # "left" | "right" | "slight left" | "slight right" | ...

    def to_dict(self) -> dict:
        d = {"type": self.type}
        if self.modifier is not None:
            d["modifier"] = self.modifier
        return d


@dataclass
class RouteStep:
    """A single navigation instruction in a route."""
    instruction: str
    distance: int                  # metres, 0 for pure maneuver markers
    duration: int                  # seconds
    point: RoutePoint
    maneuver: Optional[Maneuver] = None

    def to_dict(self) -> dict:
        d = {
            "instruction": self.instruction,
            "distance": self.distance,
            "duration": self.duration,
            "point": self.point.to_dict(),
        }
        if self.maneuver is not None:
            d["maneuver"] = self.maneuver.to_dict()
        return d

    @staticmethod
    def from_dict(d: dict) -> "RouteStep":
        m = d.get("maneuver")
        return RouteStep(
            instruction=d["instruction"],
            distance=d["distance"],
            duration=d["duration"],
            point=RoutePoint.from_dict(d["point"]),
            maneuver=Maneuver(m["type"], m.get("modifier")) if m else None,
        )


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@dataclass
class Route:
    """A renderable walking route: polyline, totals and turn-by-turn steps."""
    coordinates: List[RoutePoint]
    distance: int                  # metres
    duration: int                  # seconds
    steps: List[RouteStep] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "coordinates": [p.to_dict() for p in self.coordinates],
            "distance": self.distance,
            "duration": self.duration,
            "steps": [s.to_dict() for s in self.steps],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        return Route(
            coordinates=[RoutePoint.from_dict(p) for p in d["coordinates"]],
            distance=d["distance"],
            duration=d["duration"],
            steps=[RouteStep.from_dict(s) for s in d.get("steps", [])],
        )


# ---------------------------------------------------------------------------
# Routing outcome
# ---------------------------------------------------------------------------

class RouteSource(Enum):
    GRAPH    = "graph"
    EXTERNAL = "external"
    DIRECT   = "direct"


class FailureReason(Enum):
    NO_GRAPH_DATA          = "no_graph_data"
    NO_PATH_FOUND          = "no_path_found"
    EXTERNAL_ROUTE_FAILURE = "external_route_failure"
    EXTERNAL_DISABLED      = "external_disabled"


@dataclass
class RouteOutcome:
    """
    What NavigationSystem.plan_route() produced and why.

    `route` is always usable; `failures` lists the strategies that were
    tried and rejected before `source` succeeded.
    """
    route: Route
    source: RouteSource
    failures: List[FailureReason] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.source is RouteSource.DIRECT


# ---------------------------------------------------------------------------
# Campus points of interest
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CampusLocation:
    id: str
    name: str
    lat: float
    lng: float
    category: str                  # academic | facility | recreation | religious | food | admin
    description: str = ""

    @property
    def point(self) -> RoutePoint:
        return RoutePoint(self.lat, self.lng)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class RoutingError(Exception):
    """Base class for routing errors."""


class ExternalRouteError(RoutingError):
    """The external routing provider failed, timed out or returned garbage."""


class UnknownLocationError(RoutingError, KeyError):
    """A campus location id does not exist."""
