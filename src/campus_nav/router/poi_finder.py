# poi_finder.py
# Campus points of interest: lookup, search, nearest place and the road
# anchor each place is routed to.
#
# Usage:
#   places = LocationDirectory.from_csv("campus_locations.csv", "location_anchors.csv")
#   lib = places.get("library")
#   nav.route_to_location(my_position, lib.id)

import logging
from typing import Dict, List, Optional

import pandas as pd

from .geo_utils import haversine_distance
from .models import CampusLocation, RoutePoint, UnknownLocationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

CATEGORY_NAMES: Dict[str, str] = {
    "academic":   "Academic",
    "facility":   "Facility",
    "recreation": "Recreation",
    "religious":  "Religious",
    "food":       "Food & Dining",
    "admin":      "Administration",
}

LOCATION_COLUMNS = ["id", "name", "lat", "lng", "category", "description"]
ANCHOR_COLUMNS = ["location_id", "lat", "lng"]


def category_display_name(category: str) -> str:
    return CATEGORY_NAMES.get(category, category.title())


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------

class LocationDirectory:
    """
    In-memory list of named campus places.

    Args:
        locations: Campus locations in display order.
        anchors:   Location id -> road-graph anchor coordinate.
    """

    def __init__(
        self,
        locations: List[CampusLocation],
        anchors: Optional[Dict[str, RoutePoint]] = None,
    ) -> None:
        self._locations = list(locations)
        self._by_id = {loc.id: loc for loc in self._locations}
        self._anchors = dict(anchors or {})

    @classmethod
    def from_csv(cls, locations_csv: str, anchors_csv: Optional[str] = None) -> "LocationDirectory":
        """
        Load locations (and optionally road anchors) from CSV files.

        Raises:
            ValueError: a required column is missing.
        """
        df = pd.read_csv(locations_csv, dtype={"id": str, "category": str}, keep_default_na=False)
        _require_columns(df, LOCATION_COLUMNS[:5], locations_csv)
        if "description" not in df.columns:
            df["description"] = ""

        locations = [
            CampusLocation(
                id=row.id,
                name=row.name,
                lat=float(row.lat),
                lng=float(row.lng),
                category=row.category,
                description=row.description,
            )
            for row in df[LOCATION_COLUMNS].itertuples(index=False)
        ]

        anchors: Dict[str, RoutePoint] = {}
        if anchors_csv:
            adf = pd.read_csv(anchors_csv, dtype={"location_id": str})
            _require_columns(adf, ANCHOR_COLUMNS, anchors_csv)
            anchors = {
                row.location_id: RoutePoint(float(row.lat), float(row.lng))
                for row in adf[ANCHOR_COLUMNS].itertuples(index=False)
            }

        logger.info(f"Loaded {len(locations)} campus locations, {len(anchors)} road anchors.")
        return cls(locations, anchors)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._locations)

    def all(self) -> List[CampusLocation]:
        return list(self._locations)

    def get(self, location_id: str) -> CampusLocation:
        """
        Raises:
            UnknownLocationError: no location has this id.
        """
        try:
            return self._by_id[location_id]
        except KeyError:
            raise UnknownLocationError(location_id) from None

    def anchor_for(self, location_id: str) -> RoutePoint:
        """Road-graph anchor of a place; the place itself when none is mapped."""
        location = self.get(location_id)
        return self._anchors.get(location_id, location.point)

    def find_nearest(
        self, lat: float, lng: float, exclude_id: Optional[str] = None
    ) -> Optional[CampusLocation]:
        """Closest place to (lat, lng), optionally skipping one id."""
        nearest = None
        min_dist = float("inf")
        for loc in self._locations:
            if exclude_id and loc.id == exclude_id:
                continue
            d = haversine_distance(lat, lng, loc.lat, loc.lng)
            if d < min_dist:
                min_dist = d
                nearest = loc
        return nearest

    def find_all(self, category: str) -> List[CampusLocation]:
        category = category.lower().strip()
        return [loc for loc in self._locations if loc.category == category]

    def search(self, query: str) -> List[CampusLocation]:
        """Case-insensitive substring match on name, description and category."""
        q = query.lower().strip()
        if not q:
            return self.all()
        return [
            loc for loc in self._locations
            if q in loc.name.lower()
            or q in loc.description.lower()
            or q in loc.category.lower()
        ]

    def list_categories(self) -> List[str]:
        return sorted({loc.category for loc in self._locations})


def _require_columns(df: pd.DataFrame, columns: List[str], source: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{source} is missing column(s): {', '.join(missing)}")
