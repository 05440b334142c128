# path_graph.py
# Reads campus path geometry (GeoJSON) and builds an in-memory routing graph.
# Depends only on: geo_utils, models, nav_config, nothing else from this project.

import json
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from shapely.errors import GEOSException
from shapely.geometry import shape

from .geo_utils import polyline_length
from .models import RoutePoint
from .nav_config import NavConfig, COORD_PRECISION

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Graph primitives
# ---------------------------------------------------------------------------

class GraphEdge:
    """Directed edge carrying the full polyline of the physical path."""

    __slots__ = ["source", "target", "distance", "path"]

    def __init__(
        self,
        source: str,
        target: str,
        distance: float,
        path: Sequence[RoutePoint],
    ) -> None:
        self.source = source
        self.target = target
        self.distance = distance
        self.path = tuple(path)

    def __repr__(self) -> str:
        return f"GraphEdge({self.source}->{self.target}, {self.distance:.1f} m, {len(self.path)} pts)"


class GraphNode:
    """A junction or path endpoint."""

    __slots__ = ["id", "lat", "lng"]

    def __init__(self, nid: str, lat: float, lng: float) -> None:
        self.id = nid
        self.lat = float(lat)
        self.lng = float(lng)

    @property
    def point(self) -> RoutePoint:
        return RoutePoint(self.lat, self.lng)

    def __repr__(self) -> str:
        return f"GraphNode({self.id}, {self.lat}, {self.lng})"


# ---------------------------------------------------------------------------
# Routing graph
# ---------------------------------------------------------------------------

class RoutingGraph:
    """
    Undirected walking graph stored as directed edge pairs.

    Nodes keep insertion order; edges are an adjacency mapping from node id
    to its outgoing edges. Treat an instance as read-only once built.
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: Dict[str, List[GraphEdge]] = {}

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(e) for e in self.edges.values())

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def neighbours(self, node_id: str) -> List[GraphEdge]:
        return self.edges.get(node_id, [])

    def edge_between(self, u: str, v: str) -> Optional[GraphEdge]:
        """Shortest edge u -> v, or None if the nodes are not adjacent."""
        candidates = [e for e in self.neighbours(u) if e.target == v]
        if not candidates:
            return None
        return min(candidates, key=lambda e: e.distance)

    def add_node(self, node: GraphNode) -> None:
        self.nodes[node.id] = node

    def add_edge(self, edge: GraphEdge) -> None:
        self.edges.setdefault(edge.source, []).append(edge)


def coord_key(lat: float, lng: float, precision: int = COORD_PRECISION) -> str:
    """Rounded key under which near-identical coordinates are merged."""
    return f"{lng:.{precision}f},{lat:.{precision}f}"


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class _GraphBuilder:
    """Registers vertices with rounding dedup and emits edge pairs."""

    def __init__(self, precision: int) -> None:
        self.graph = RoutingGraph()
        self.precision = precision
        self._ids: Dict[str, str] = {}

    def node_id(self, point: RoutePoint) -> str:
        key = coord_key(point.lat, point.lng, self.precision)
        nid = self._ids.get(key)
        if nid is None:
            nid = f"node_{len(self._ids)}"
            self._ids[key] = nid
            self.graph.add_node(GraphNode(nid, point.lat, point.lng))
        return nid

    def add_polyline(self, points: Sequence[RoutePoint]) -> None:
        start_id = self.node_id(points[0])
        end_id = self.node_id(points[-1])
        for p in points:
            self.node_id(p)

        distance = polyline_length((p.lat, p.lng) for p in points)
        self.graph.add_edge(GraphEdge(start_id, end_id, distance, points))
        self.graph.add_edge(GraphEdge(end_id, start_id, distance, list(reversed(points))))


def build_graph(
    polylines: Optional[Iterable[Sequence[RoutePoint]]],
    precision: int = COORD_PRECISION,
) -> RoutingGraph:
    """
    Build a routing graph from walkable path polylines.

    Every vertex becomes a node (merged by rounding to `precision`
    decimals); every polyline becomes a forward and a reverse edge between
    its first and last vertex, each carrying the full vertex list.

    Args:
        polylines: Iterable of point sequences. None yields an empty graph.
        precision: Decimal places used for vertex deduplication.

    Returns:
        A new RoutingGraph. The input is not modified.
    """
    builder = _GraphBuilder(precision)
    if polylines is None:
        logger.error("No path data supplied; routing graph is empty.")
        return builder.graph

    try:
        items = list(polylines)
    except TypeError:
        logger.error(f"Path data is not iterable ({type(polylines).__name__}); routing graph is empty.")
        return builder.graph

    skipped = 0
    for points in items:
        try:
            pts = [RoutePoint(float(p.lat), float(p.lng)) for p in points]
        except (TypeError, AttributeError, ValueError):
            skipped += 1
            continue
        if len(pts) < 2:
            skipped += 1
            continue
        builder.add_polyline(pts)

    graph = builder.graph
    if skipped:
        logger.warning(f"Skipped {skipped} path(s) with fewer than 2 usable coordinates.")
    logger.info(f"Routing graph built: {graph.node_count} nodes, {graph.edge_count} edges.")
    return graph


# ---------------------------------------------------------------------------
# GeoJSON loading
# ---------------------------------------------------------------------------

def load_path_features(geojson) -> List[List[RoutePoint]]:
    """
    Extract LineString polylines from a GeoJSON FeatureCollection.

    MultiLineStrings are split into their parts. Other geometry types are
    ignored; broken geometries are skipped with a warning. A collection
    without a `features` list yields no polylines.
    """
    features = geojson.get("features") if isinstance(geojson, dict) else None
    if not isinstance(features, list):
        logger.error("Invalid campus paths data: no 'features' list.")
        return []

    polylines: List[List[RoutePoint]] = []
    for i, feature in enumerate(features):
        try:
            geom = shape(feature["geometry"])
        except (KeyError, TypeError, ValueError, AttributeError, GEOSException) as e:
            logger.warning(f"Skipping path feature {i}: {e}")
            continue

        if geom.geom_type == "LineString":
            parts = [geom]
        elif geom.geom_type == "MultiLineString":
            parts = list(geom.geoms)
        else:
            continue

        for part in parts:
            # GeoJSON order is (lng, lat[, elevation])
            polylines.append([RoutePoint(c[1], c[0]) for c in part.coords])
    return polylines


def load_graph(path: str, config: Optional[NavConfig] = None) -> RoutingGraph:
    """
    Read a GeoJSON file of campus paths and build the routing graph.

    A missing or unreadable file yields an empty graph so callers fall back
    to direct routing instead of failing.
    """
    config = config or NavConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (IOError, ValueError) as e:
        logger.error(f"Failed to load campus paths from {path}: {e}")
        return RoutingGraph()

    logger.info(f"Loading campus paths from {path}")
    return build_graph(load_path_features(data), precision=config.coord_precision)
