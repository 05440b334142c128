import pytest

from campus_nav.router.models import RoutePoint
from campus_nav.router.nav_config import NavConfig
from campus_nav.router.path_graph import GraphEdge, GraphNode, RoutingGraph, build_graph


def make_graph(nodes, links):
    """
    Hand-built graph with exact edge weights.

    nodes: {id: (lat, lng)}
    links: [(u, v, distance)], added in both directions
    """
    graph = RoutingGraph()
    for nid, (lat, lng) in nodes.items():
        graph.add_node(GraphNode(nid, lat, lng))
    for u, v, d in links:
        pu = graph.nodes[u].point
        pv = graph.nodes[v].point
        graph.add_edge(GraphEdge(u, v, d, [pu, pv]))
        graph.add_edge(GraphEdge(v, u, d, [pv, pu]))
    return graph


@pytest.fixture
def config(tmp_path):
    return NavConfig(log_dir=str(tmp_path))


@pytest.fixture
def triangle_graph():
    # A–B: 10, B–C: 10, A–C: 30 (plus an unrelated node D)
    return make_graph(
        {"A": (0.0, 0.0), "B": (0.0, 0.001), "C": (0.001, 0.001), "D": (0.5, 0.5)},
        [("A", "B", 10.0), ("B", "C", 10.0), ("A", "C", 30.0)],
    )


@pytest.fixture
def l_shape_graph():
    # A(0,0) -> B(0,1) heads east, B -> C(1,1) heads north
    return build_graph([
        [RoutePoint(0.0, 0.0), RoutePoint(0.0, 1.0)],
        [RoutePoint(0.0, 1.0), RoutePoint(1.0, 1.0)],
    ])
