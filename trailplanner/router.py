from dataclasses import dataclass
from typing import Optional

import rustworkx as rx

from .domain import (
    GraphNode,
    LatLon,
    RouteSegment,
    RouteWaypoint,
    create_custom_waypoint,
    create_node_waypoint,
)
from .geodesy import distance_meters, path_distances
from .graph_builder import RoutingGraph


@dataclass(frozen=True)
class NearestNode:
    node_id: str
    distance: float
    node: GraphNode


class Router:
    """Nearest-node lookup and shortest paths over one RoutingGraph"""

    def __init__(self, routing_graph: RoutingGraph):
        self.routing_graph = routing_graph

    @property
    def node_count(self) -> int:
        return self.routing_graph.num_nodes()

    @property
    def edge_count(self) -> int:
        return self.routing_graph.num_edges()

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self.routing_graph.nodes.get(node_id)

    def find_nearest_node(
        self, lat: float, lon: float, max_distance: float
    ) -> Optional[NearestNode]:
        """
        Find the nearest node to a point.
        Returns None if the graph is empty or the nearest node is farther than
        max_distance (meters).
        """
        query = LatLon(lat, lon)
        min_dist = float("inf")
        nearest = None

        for node in self.routing_graph.nodes.values():
            dist = distance_meters(query, node)
            if dist < min_dist:
                min_dist = dist
                nearest = node

        if nearest is None or min_dist > max_distance:
            return None
        return NearestNode(node_id=nearest.id, distance=min_dist, node=nearest)

    def route(self, from_id: str, to_id: str) -> Optional[RouteSegment]:
        """
        Shortest path between two nodes using A* with a geodesic heuristic.
        Returns None when to_id is unknown or not reachable from from_id.
        Raises KeyError for an unknown from_id.
        """
        start = self.routing_graph.node_indices[from_id]
        target = self.get_node(to_id)
        if target is None:
            return None

        try:
            path = rx.digraph_astar_shortest_path(
                self.routing_graph.graph,
                start,
                lambda node: node.id == to_id,
                float,
                lambda node: distance_meters(node, target),
            )
        except rx.NoPathFound:
            return None

        nodes = [self.routing_graph.graph[idx] for idx in path]
        if not nodes:
            return None

        # Normalize to from -> to order
        if nodes[0].id != from_id and nodes[-1].id == from_id:
            nodes.reverse()

        coordinates = tuple(LatLon(node.lat, node.lon) for node in nodes)
        return RouteSegment(
            coordinates=coordinates, distance=path_distances(coordinates)[-1]
        )

    def create_straight_segment(self, from_point, to_point) -> RouteSegment:
        """Two-point segment, used whenever a waypoint is not on the graph"""
        return RouteSegment(
            coordinates=(
                LatLon(from_point.lat, from_point.lon),
                LatLon(to_point.lat, to_point.lon),
            ),
            distance=distance_meters(from_point, to_point),
        )


def snap_waypoint(
    router: Router, lat: float, lon: float, max_distance: float
) -> RouteWaypoint:
    """
    Bind a clicked coordinate to the nearest graph node within max_distance,
    or leave it as a custom waypoint.
    """
    nearest = router.find_nearest_node(lat, lon, max_distance)
    if nearest is not None:
        return create_node_waypoint(nearest.node.lat, nearest.node.lon, nearest.node_id)
    return create_custom_waypoint(lat, lon)
