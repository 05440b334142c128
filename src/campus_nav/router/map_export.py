# map_export.py
# Offline tooling: turns an OSM extract into the static files the router
# consumes (walkable paths GeoJSON, campus locations CSV).
# Needs: osmnx, pandas, shapely

import logging
from typing import Dict, List, Optional, Tuple

import osmnx as ox
import pandas as pd
from shapely.geometry import LineString, MultiLineString, Point

from .geo_utils import polyline_length

logger = logging.getLogger(__name__)


# Highway types accepted for walking
WALK_HWY = frozenset({
    "footway", "path", "pedestrian", "steps", "living_street",
    "residential", "service", "track", "tertiary", "tertiary_link",
    "secondary", "secondary_link", "primary", "primary_link",
})
FOOT_ONLY = frozenset({"footway", "path", "pedestrian", "steps", "living_street"})
MOTOR_ONLY = frozenset({"motorway", "motorway_link", "trunk", "trunk_link"})
FOOT_ALLOWED = frozenset({"yes", "designated", "permissive"})

EDGE_COLUMNS = ["u", "v", "key", "name", "highway", "foot", "sidewalk", "surface", "length"]

# OSM tag value -> campus category
CATEGORY_TAGS: Dict[str, Dict[str, str]] = {
    "amenity": {
        "university": "academic", "college": "academic", "school": "academic",
        "library": "academic",
        "restaurant": "food", "cafe": "food", "fast_food": "food", "food_court": "food",
        "place_of_worship": "religious",
        "townhall": "admin",
        "theatre": "facility", "arts_centre": "facility", "parking": "facility",
    },
    "leisure": {
        "park": "recreation", "garden": "recreation", "pitch": "recreation",
        "sports_centre": "recreation", "swimming_pool": "recreation", "stadium": "recreation",
    },
    "office": {
        "administrative": "admin", "educational_institution": "admin",
    },
    "barrier": {
        "gate": "facility",
    },
}


def _tag_values(value) -> set:
    """osmnx collapses repeated tags into lists; missing tags are NaN."""
    if value is None or (isinstance(value, float) and value != value):
        return set()
    if isinstance(value, (list, tuple, set)):
        return {str(v) for v in value}
    return {str(value)}


def is_walkable(row) -> bool:
    """Whether an osmnx edge row (mapping-like) is usable on foot."""
    highways = _tag_values(row.get("highway"))
    foot = str(row.get("foot", "") or "").lower()
    sidewalk = str(row.get("sidewalk", "") or "").lower()

    if highways & FOOT_ONLY:
        return True
    if highways & MOTOR_ONLY:
        return foot in FOOT_ALLOWED
    if highways & WALK_HWY:
        if sidewalk and sidewalk not in {"no", "none", "nan"}:
            return True
        if foot in FOOT_ALLOWED:
            return True
        # campus service roads rarely carry sidewalk tags
        return bool(highways & {"service", "residential", "living_street", "track"})
    return False


def classify_feature(row) -> Optional[str]:
    """Campus category for an OSM feature row, or None if it is not a campus place."""
    for tag, mapping in CATEGORY_TAGS.items():
        for value in _tag_values(row.get(tag)):
            if value in mapping:
                return mapping[value]
    return None


def split_into_segments(line) -> List[LineString]:
    """Consecutive two-point pieces of a LineString, repeated vertices dropped."""
    coords = list(line.coords)
    return [LineString([a, b]) for a, b in zip(coords, coords[1:]) if a != b]


def export_walkable_paths(osm_path: str, out_geojson: str, out_csv: Optional[str] = None) -> int:
    """
    Write the walkable edges of an OSM extract as two-point LineStrings.

    Returns:
        Number of exported segments.
    """
    logger.info(f"Loading graph from {osm_path}")
    G = ox.graph_from_xml(osm_path, simplify=True, bidirectional=True)
    _, edges_gdf = ox.graph_to_gdfs(G, nodes=True, edges=True)

    walk_edges = edges_gdf[edges_gdf.apply(is_walkable, axis=1)].copy()
    if walk_edges.empty:
        logger.warning(f"{osm_path}: no walkable edges")
        return 0

    walk_edges = walk_edges.reset_index()
    keep = [c for c in EDGE_COLUMNS if c in walk_edges.columns] + ["geometry"]
    walk_edges = walk_edges[keep]
    # list-valued tags cannot be written by the GeoJSON driver
    for col in keep:
        if col != "geometry":
            walk_edges[col] = walk_edges[col].apply(
                lambda v: ";".join(sorted(_tag_values(v))) if isinstance(v, (list, set, tuple)) else v
            )
    # the router only joins polyline endpoints, so every vertex must start or end a feature
    walk_edges["geometry"] = walk_edges.geometry.apply(lambda g: MultiLineString(split_into_segments(g)))
    walk_edges = walk_edges[~walk_edges.geometry.is_empty].explode(index_parts=False).reset_index(drop=True)
    if "length" in walk_edges.columns:
        walk_edges["length"] = walk_edges.geometry.apply(
            lambda g: polyline_length((lat, lng) for lng, lat in g.coords)
        )
    walk_edges.to_file(out_geojson, driver="GeoJSON")

    if out_csv:
        walk_csv = pd.DataFrame(walk_edges.drop(columns=["geometry"]))
        walk_csv["wkt"] = walk_edges["geometry"].apply(lambda g: g.wkt)
        walk_csv.to_csv(out_csv, index=False)

    logger.info(f"Wrote {out_geojson} ({len(walk_edges)} segments)")
    return len(walk_edges)


def export_campus_locations(
    osm_path: str,
    center_latlng: Tuple[float, float],
    radius_m: float,
    out_csv: str,
    tags: Optional[Dict[str, List[str]]] = None,
) -> int:
    """
    Extract named campus places within radius_m of center_latlng into the
    locations CSV format (id, name, lat, lng, category, description).

    Returns:
        Number of exported places.
    """
    tags = tags or {tag: sorted(values) for tag, values in CATEGORY_TAGS.items()}
    gdf = ox.features_from_xml(osm_path, tags=tags)
    if gdf.empty:
        logger.warning(f"{out_csv}: no matching features")
        return 0

    # polygons (buildings, grounds) are reduced to a representative point
    gdf = gdf.set_crs(4326, allow_override=True)
    gdf["category"] = [classify_feature(r) for _, r in gdf.iterrows()]
    gdf = gdf[gdf["category"].notna()].copy()
    gdf["geometry"] = gdf.geometry.representative_point()

    gdf_proj = ox.projection.project_gdf(gdf)
    center_ll = Point(center_latlng[1], center_latlng[0])  # lng, lat
    center_proj, _ = ox.projection.project_geometry(center_ll, crs="EPSG:4326", to_crs=gdf_proj.crs)
    dists = gdf_proj.geometry.distance(center_proj)
    gdf_sel = gdf.loc[dists <= radius_m]

    if "name" in gdf_sel.columns:
        gdf_sel = gdf_sel[gdf_sel["name"].fillna("").astype(str) != ""]
    else:
        gdf_sel = gdf_sel.iloc[0:0]
    if gdf_sel.empty:
        logger.warning(f"{out_csv}: no named places within {radius_m} m")
        return 0

    names = gdf_sel["name"].astype(str).values
    df = pd.DataFrame({
        "id": [slugify(n) for n in names],
        "name": names,
        "lat": gdf_sel.geometry.y.values,
        "lng": gdf_sel.geometry.x.values,
        "category": gdf_sel["category"].values,
        "description": "",
    })
    df = df.drop_duplicates(subset="id")
    df.to_csv(out_csv, index=False)
    logger.info(f"Wrote {out_csv} ({len(df)} places)")
    return len(df)


def slugify(name: str) -> str:
    """'IT/CS/CT Department' -> 'it-cs-ct-department'"""
    out = []
    for ch in name.lower():
        out.append(ch if ch.isalnum() else "-")
    return "-".join(part for part in "".join(out).split("-") if part)
