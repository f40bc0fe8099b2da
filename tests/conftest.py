from unittest.mock import MagicMock

import pytest

from trailplanner.domain import RawNode, RawWay, RouteSegment, LatLon
from trailplanner.graph_builder import build_routing_graph
from trailplanner.router import Router


def make_nodes(*nodes):
    return {node_id: RawNode(node_id, lat, lon) for node_id, lat, lon in nodes}


@pytest.fixture
def trail_nodes():
    # A straight north-running trail (~11 m hops) and a separate far-away one
    return make_nodes(
        ("1", 50.0, 10.0),
        ("2", 50.0001, 10.0),
        ("3", 50.0002, 10.0),
        ("4", 50.0003, 10.0),
        ("5", 50.0004, 10.0),
        ("10", 50.01, 10.01),
        ("11", 50.0101, 10.01),
    )


@pytest.fixture
def trail_ways():
    return [
        RawWay("100", ("1", "2", "3", "4", "5"), {"highway": "path"}),
        RawWay("200", ("10", "11"), {"highway": "footway"}),
    ]


@pytest.fixture
def routing_graph(trail_nodes, trail_ways):
    return build_routing_graph(trail_nodes, trail_ways)


@pytest.fixture
def router(routing_graph):
    return Router(routing_graph)


@pytest.fixture
def mock_router():
    """Router double whose segments carry the endpoints they connect"""
    router = MagicMock()

    def route(from_id, to_id):
        return RouteSegment(
            coordinates=(LatLon(0.0, float(from_id)), LatLon(0.0, float(to_id))),
            distance=100.0,
        )

    def straight(a, b):
        return RouteSegment(
            coordinates=(LatLon(a.lat, a.lon), LatLon(b.lat, b.lon)), distance=50.0
        )

    router.route.side_effect = route
    router.create_straight_segment.side_effect = straight
    return router
