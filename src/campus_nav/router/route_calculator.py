# route_calculator.py
# Dijkstra pathfinding on a RoutingGraph plus route assembly.
# Returns a Route (polyline, totals and turn-by-turn steps).

import heapq
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .geo_utils import haversine_distance, turn_angle
from .models import FailureReason, Maneuver, Route, RoutePoint, RouteStep
from .nav_config import NavConfig, STRAIGHT_THRESHOLD_DEG, SLIGHT_THRESHOLD_DEG
from .path_graph import GraphEdge, GraphNode, RoutingGraph, coord_key

logger = logging.getLogger(__name__)


INSTRUCTIONS = {
    ("depart", None): "Start walking",
    ("arrive", None): "Arrive at your destination",
    ("continue", None): "Continue straight",
    ("turn", "left"): "Turn left",
    ("turn", "right"): "Turn right",
    ("turn", "slight left"): "Bear left",
    ("turn", "slight right"): "Bear right",
}


# ---------------------------------------------------------------------------
# Nearest-node locator
# ---------------------------------------------------------------------------

def find_nearest_node(graph: RoutingGraph, lat: float, lng: float) -> Optional[GraphNode]:
    """Closest graph node to (lat, lng); ties go to the first inserted node."""
    best_node = None
    min_dist = float("inf")
    for node in graph.nodes.values():
        d = haversine_distance(lat, lng, node.lat, node.lng)
        if d < min_dist:
            min_dist = d
            best_node = node
    return best_node


# ---------------------------------------------------------------------------
# Shortest-path engine
# ---------------------------------------------------------------------------

@dataclass
class ShortestPath:
    path: List[str] = field(default_factory=list)
    total_distance: float = 0.0
    edges: List[GraphEdge] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.path)


def shortest_path(graph: RoutingGraph, start_id: str, end_id: str) -> ShortestPath:
    """
    Dijkstra between two node ids.

    Returns:
        ShortestPath with the ordered node ids, the total distance in metres
        and the edge used for every hop. An empty path means no route.
    """
    if start_id not in graph.nodes or end_id not in graph.nodes:
        return ShortestPath()

    counter = 0
    open_set: list = [(0.0, counter, start_id)]
    dist: dict = {start_id: 0.0}
    came_from: dict = {start_id: (None, None)}
    visited: set = set()

    while open_set:
        d, _, current = heapq.heappop(open_set)
        if current in visited:
            continue
        visited.add(current)
        if current == end_id:
            break
        for edge in graph.neighbours(current):
            neighbour = edge.target
            if neighbour in visited:
                continue
            alt = d + edge.distance
            if alt < dist.get(neighbour, float("inf")):
                dist[neighbour] = alt
                came_from[neighbour] = (current, edge)
                counter += 1
                heapq.heappush(open_set, (alt, counter, neighbour))

    if end_id not in came_from:
        return ShortestPath()

    path: List[str] = []
    edges: List[GraphEdge] = []
    curr = end_id
    while curr is not None:
        path.append(curr)
        parent, edge = came_from[curr]
        if edge is not None:
            edges.append(edge)
        curr = parent
    path.reverse()
    edges.reverse()

    if path[0] != start_id:
        return ShortestPath()
    return ShortestPath(path=path, total_distance=dist[end_id], edges=edges)


# ---------------------------------------------------------------------------
# Turn classifier
# ---------------------------------------------------------------------------

def classify_turn_angle(
    angle: float,
    straight_deg: float = STRAIGHT_THRESHOLD_DEG,
    slight_deg: float = SLIGHT_THRESHOLD_DEG,
) -> Maneuver:
    """
    Classify a signed turn angle in degrees.

    |angle| <= straight_deg                 -> continue
    straight_deg < |angle| <= slight_deg    -> slight left / slight right
    |angle| > slight_deg                    -> left / right
    """
    magnitude = abs(angle)
    if magnitude <= straight_deg:
        return Maneuver("continue")
    side = "right" if angle > 0 else "left"
    if magnitude <= slight_deg:
        return Maneuver("turn", f"slight {side}")
    return Maneuver("turn", side)


def classify_turn(
    prev: RoutePoint,
    current: RoutePoint,
    nxt: RoutePoint,
    straight_deg: float = STRAIGHT_THRESHOLD_DEG,
    slight_deg: float = SLIGHT_THRESHOLD_DEG,
) -> Maneuver:
    """Maneuver at `current` when walking prev -> current -> nxt."""
    angle = turn_angle(
        (prev.lat, prev.lng),
        (current.lat, current.lng),
        (nxt.lat, nxt.lng),
    )
    return classify_turn_angle(angle, straight_deg, slight_deg)


def format_instruction(maneuver: Maneuver) -> str:
    return INSTRUCTIONS.get((maneuver.type, maneuver.modifier), "Continue")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class RouteCalculator:
    """
    Assembles a walking route between two coordinates over a RoutingGraph.

    Args:
        graph:  RoutingGraph from path_graph.build_graph() / load_graph().
        config: NavConfig instance.
    """

    def __init__(self, graph: RoutingGraph, config: Optional[NavConfig] = None) -> None:
        self.graph = graph
        self.config = config or NavConfig()

    def assemble(
        self, from_lat: float, from_lng: float, to_lat: float, to_lng: float
    ) -> Optional[Route]:
        """Route between two coordinates, or None when the graph cannot serve it."""
        route, _ = self.calculate(RoutePoint(from_lat, from_lng), RoutePoint(to_lat, to_lng))
        return route

    def calculate(
        self, origin: RoutePoint, destination: RoutePoint
    ) -> Tuple[Optional[Route], Optional[FailureReason]]:
        """
        Snap both ends to the graph, run Dijkstra and build the route.

        Returns:
            (route, reason): route is None on failure and reason says why.
        """
        if self.graph.is_empty:
            logger.warning("Routing graph has no nodes.")
            return None, FailureReason.NO_GRAPH_DATA

        start_node = find_nearest_node(self.graph, origin.lat, origin.lng)
        end_node = find_nearest_node(self.graph, destination.lat, destination.lng)
        if not start_node or not end_node:
            logger.warning("Could not find start or end node.")
            return None, FailureReason.NO_GRAPH_DATA

        result = shortest_path(self.graph, start_node.id, end_node.id)
        if not result.found:
            logger.warning(f"No path found between {start_node.id} and {end_node.id}.")
            return None, FailureReason.NO_PATH_FOUND

        coordinates = self._build_coordinates(origin, destination, start_node, end_node, result)
        steps = self._build_steps(origin, destination, result.edges)
        speed = self.config.walking_speed_ms
        route = Route(
            coordinates=coordinates,
            distance=round(result.total_distance),
            duration=round(result.total_distance / speed),
            steps=steps,
        )
        logger.info(
            f"Graph route: {len(result.path)} nodes, {route.distance} m, {len(steps)} steps."
        )
        return route, None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _build_coordinates(
        self,
        origin: RoutePoint,
        destination: RoutePoint,
        start_node: GraphNode,
        end_node: GraphNode,
        result: ShortestPath,
    ) -> List[RoutePoint]:
        threshold = self.config.snap_threshold_m
        precision = self.config.coord_precision
        coordinates: List[RoutePoint] = []
        last_key = None

        def push(point: RoutePoint) -> None:
            nonlocal last_key
            key = coord_key(point.lat, point.lng, precision)
            if key != last_key:
                coordinates.append(point)
                last_key = key

        if haversine_distance(origin.lat, origin.lng, start_node.lat, start_node.lng) > threshold:
            push(origin)

        if result.edges:
            for edge in result.edges:
                for point in edge.path:
                    push(point)
        else:
            # origin and destination snapped onto the same node
            push(start_node.point)

        if haversine_distance(destination.lat, destination.lng, end_node.lat, end_node.lng) > threshold:
            push(destination)
        return coordinates

    def _build_steps(
        self, origin: RoutePoint, destination: RoutePoint, edges: List[GraphEdge]
    ) -> List[RouteStep]:
        speed = self.config.walking_speed_ms
        steps: List[RouteStep] = [
            RouteStep(
                instruction=format_instruction(Maneuver("depart")),
                distance=0,
                duration=0,
                point=origin,
                maneuver=Maneuver("depart"),
            )
        ]

        for edge, next_edge in zip(edges, edges[1:]):
            if len(edge.path) < 2 or len(next_edge.path) < 2:
                continue
            current = edge.path[-1]
            maneuver = classify_turn(
                edge.path[-2],
                current,
                next_edge.path[1],
                self.config.straight_threshold_deg,
                self.config.slight_threshold_deg,
            )
            if maneuver.type == "continue":
                continue
            steps.append(RouteStep(
                instruction=format_instruction(maneuver),
                distance=round(edge.distance),
                duration=round(edge.distance / speed),
                point=current,
                maneuver=maneuver,
            ))

        steps.append(RouteStep(
            instruction=format_instruction(Maneuver("arrive")),
            distance=0,
            duration=0,
            point=destination,
            maneuver=Maneuver("arrive"),
        ))
        return steps
