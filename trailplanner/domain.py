from dataclasses import dataclass, field
from itertools import count
from typing import Dict, List, Optional, Tuple, Union
import uuid


@dataclass(frozen=True)
class LatLon:
    lat: float
    lon: float


@dataclass(frozen=True)
class BBox:
    """Geographic bounding box in degrees"""

    south: float
    west: float
    north: float
    east: float

    def cache_key(self) -> str:
        return f"{self.south:.3f},{self.west:.3f},{self.north:.3f},{self.east:.3f}"


@dataclass(frozen=True)
class RawNode:
    id: str
    lat: float
    lon: float


@dataclass(frozen=True)
class RawWay:
    id: str
    node_ids: Tuple[str, ...]
    tags: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def highway(self) -> Optional[str]:
        return self.tags.get("highway")


@dataclass
class TrailData:
    """Nodes and ways returned by a trail-data source for one bounding box"""

    nodes: Dict[str, RawNode]
    ways: List[RawWay]


@dataclass(frozen=True)
class GraphNode:
    id: str
    lat: float
    lon: float
    is_intermediate: bool = False
    origin_way_id: Optional[str] = None


@dataclass(frozen=True)
class Edge:
    from_id: str
    to_id: str
    weight: float


@dataclass(frozen=True)
class NodeWaypoint:
    """Waypoint bound to a routing graph node"""

    lat: float
    lon: float
    node_id: str
    id: str = field(default="", compare=False)


@dataclass(frozen=True)
class CustomWaypoint:
    """Free-floating waypoint, connected with straight lines"""

    lat: float
    lon: float
    id: str = field(default="", compare=False)


RouteWaypoint = Union[NodeWaypoint, CustomWaypoint]


@dataclass(frozen=True)
class RouteSegment:
    coordinates: Tuple[LatLon, ...]
    distance: float

    @property
    def is_marker(self) -> bool:
        return len(self.coordinates) == 1 and self.distance == 0


@dataclass(frozen=True)
class ElevationPoint:
    distance: float
    elevation: float
    lat: float
    lon: float


@dataclass(frozen=True)
class ElevationStats:
    gain: float
    loss: float
    min: float
    max: float


_node_waypoint_counter = count(1)


def create_node_waypoint(lat: float, lon: float, node_id: str) -> NodeWaypoint:
    return NodeWaypoint(
        lat=lat,
        lon=lon,
        node_id=node_id,
        id=f"node-{node_id}-{next(_node_waypoint_counter)}",
    )


def create_custom_waypoint(lat: float, lon: float) -> CustomWaypoint:
    return CustomWaypoint(lat=lat, lon=lon, id=f"custom-{uuid.uuid4().hex[:12]}")
