import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Union

import rustworkx as rx

from .domain import Edge, GraphNode, RawNode, RawWay
from .geodesy import bearing_degrees, destination_point, distance_meters

# Constants
MAX_SEGMENT_LENGTH = 25  # Maximum distance in meters between connected nodes
DEFAULT_HIGHWAY_WEIGHT = 1.5

# Lower weight = more preferred
HIGHWAY_WEIGHTS = {
    "path": 1.0,
    "footway": 1.0,
    "pedestrian": 1.0,
    "bridleway": 1.2,
    "cycleway": 1.3,
    "living_street": 1.4,
    "track": 1.5,
    "steps": 1.5,
    "service": 1.5,
    "residential": 1.6,
    "unclassified": 1.7,
    "road": 1.7,
    "tertiary": 1.8,
    "tertiary_link": 1.8,
    "secondary": 2.0,
    "secondary_link": 2.0,
}


@dataclass
class RoutingGraph:
    """
    Directed trail graph. Node payloads are GraphNode objects and edge
    payloads are float weights; every way segment is stored as a pair of
    directed edges with the same weight.
    """

    graph: rx.PyDiGraph = field(default_factory=rx.PyDiGraph)
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    node_indices: Dict[str, int] = field(default_factory=dict)

    def add_node(self, node: GraphNode) -> int:
        if node.id in self.node_indices:
            idx = self.node_indices[node.id]
            self.graph[idx] = node
        else:
            idx = self.graph.add_node(node)
            self.node_indices[node.id] = idx
        self.nodes[node.id] = node
        return idx

    def add_link(self, from_id: str, to_id: str, weight: float) -> None:
        """Add both directions of an edge with the same weight"""
        a = self.node_indices[from_id]
        b = self.node_indices[to_id]
        self.graph.add_edge(a, b, weight)
        self.graph.add_edge(b, a, weight)

    def edges(self) -> Iterator[Edge]:
        for a, b, weight in self.graph.weighted_edge_list():
            yield Edge(self.graph[a].id, self.graph[b].id, weight)

    def num_nodes(self) -> int:
        return self.graph.num_nodes()

    def num_edges(self) -> int:
        return self.graph.num_edges()


def highway_weight(highway) -> float:
    if isinstance(highway, list):
        highway = highway[0] if highway else None
    return HIGHWAY_WEIGHTS.get(highway, DEFAULT_HIGHWAY_WEIGHT)


def intermediate_node_id(way_id: str, segment_index: int, position: int) -> str:
    return f"{way_id}_seg{segment_index}_int{position}"


def generate_intermediate_nodes(
    from_node: GraphNode, to_node: GraphNode, way_id: str, segment_index: int
) -> List[GraphNode]:
    """
    Subdivide from_node -> to_node so that no hop exceeds MAX_SEGMENT_LENGTH.
    Returns the intermediate nodes in order (empty when no subdivision needed).
    """
    dist = distance_meters(from_node, to_node)
    if dist <= MAX_SEGMENT_LENGTH:
        return []

    num_segments = math.ceil(dist / MAX_SEGMENT_LENGTH)
    bearing = bearing_degrees(from_node, to_node)

    nodes = []
    for i in range(1, num_segments):
        point = destination_point(from_node, dist * i / num_segments, bearing)
        nodes.append(
            GraphNode(
                id=intermediate_node_id(way_id, segment_index, i),
                lat=point.lat,
                lon=point.lon,
                is_intermediate=True,
                origin_way_id=way_id,
            )
        )
    return nodes


def build_routing_graph(
    nodes: Union[Mapping[str, RawNode], Iterable[RawNode]], ways: Iterable[RawWay]
) -> RoutingGraph:
    """
    Create a routing graph from raw trail nodes and ways.
    Ways referencing unknown nodes are tolerated: the affected pairs are skipped.
    """
    routing_graph = RoutingGraph()
    raw_nodes = nodes.values() if isinstance(nodes, Mapping) else nodes

    # Add all original nodes to the lookup
    for raw in raw_nodes:
        routing_graph.add_node(GraphNode(id=raw.id, lat=raw.lat, lon=raw.lon))

    skipped = 0
    for way in ways:
        weight = highway_weight(way.highway)

        for i in range(len(way.node_ids) - 1):
            from_node = routing_graph.nodes.get(way.node_ids[i])
            to_node = routing_graph.nodes.get(way.node_ids[i + 1])
            if from_node is None or to_node is None:
                skipped += 1
                continue

            intermediates = generate_intermediate_nodes(from_node, to_node, way.id, i)
            for node in intermediates:
                routing_graph.add_node(node)

            chain = [from_node, *intermediates, to_node]
            for a, b in zip(chain[:-1], chain[1:]):
                routing_graph.add_link(a.id, b.id, distance_meters(a, b) * weight)

    if skipped:
        print(f"Skipped {skipped} way segments with missing nodes")
    print(
        f"Graph created with {routing_graph.num_nodes()} nodes and "
        f"{routing_graph.num_edges()} edges"
    )
    return routing_graph
