from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from .domain import (
    BBox,
    CustomWaypoint,
    ElevationPoint,
    ElevationStats,
    LatLon,
    NodeWaypoint,
    RouteSegment,
)
from .route import Route


class WaypointType(str, Enum):
    NODE = "node"
    CUSTOM = "custom"


class Coordinate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class BoundingBox(BaseModel):
    south: float = Field(ge=-90, le=90)
    west: float = Field(ge=-180, le=180)
    north: float = Field(ge=-90, le=90)
    east: float = Field(ge=-180, le=180)

    @model_validator(mode="after")
    def validate_extent(self):
        if self.south > self.north:
            raise ValueError("south must be <= north")
        if self.west > self.east:
            raise ValueError("west must be <= east")
        return self

    def to_domain(self) -> BBox:
        return BBox(south=self.south, west=self.west, north=self.north, east=self.east)


class Waypoint(BaseModel):
    type: WaypointType
    lat: float
    lon: float
    node_id: Optional[str] = None
    id: str = ""

    @model_validator(mode="after")
    def validate_node_id(self):
        if self.type == WaypointType.NODE and not self.node_id:
            raise ValueError("node waypoints need a node_id")
        return self


class Segment(BaseModel):
    coordinates: List[Coordinate] = Field(min_length=1)
    distance: float = Field(ge=0)


class ElevationPointModel(BaseModel):
    distance: float
    elevation: float
    lat: float
    lon: float


class ElevationStatsModel(BaseModel):
    gain: float
    loss: float
    min: Optional[float]  # None when no samples exist
    max: Optional[float]


class RouteModel(BaseModel):
    waypoints: List[Waypoint] = []
    segments: List[Segment] = []
    total_distance: float = 0.0
    elevation_profile: Optional[List[ElevationPointModel]] = None
    elevation_stats: Optional[ElevationStatsModel] = None


class GeoJSONLineString(BaseModel):
    type: str = "LineString"
    coordinates: List[Tuple[float, float]]  # [lon, lat]


class LoadTrailsRequest(BaseModel):
    bbox: BoundingBox
    zoom: Optional[float] = None
    route: Optional[RouteModel] = None


class LoadTrailsResponse(BaseModel):
    node_count: int
    edge_count: int
    generation: int
    route: Optional[RouteModel]
    trail_network: List[GeoJSONLineString]


class SnapRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    zoom: float = Field(default=15, ge=0, le=22)


class BuildRouteRequest(BaseModel):
    waypoints: List[Waypoint]


class AddWaypointRequest(BaseModel):
    route: RouteModel
    waypoint: Waypoint


class DeleteWaypointRequest(BaseModel):
    route: RouteModel
    index: int = Field(ge=0)


class MoveWaypointRequest(BaseModel):
    route: RouteModel
    index: int = Field(ge=0)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    zoom: float = Field(default=15, ge=0, le=22)


class PlotRequest(BaseModel):
    route: Optional[RouteModel] = None


class RouteRequest(BaseModel):
    route: RouteModel


def waypoint_to_domain(waypoint: Waypoint):
    if waypoint.type == WaypointType.NODE:
        return NodeWaypoint(
            lat=waypoint.lat, lon=waypoint.lon, node_id=waypoint.node_id, id=waypoint.id
        )
    return CustomWaypoint(lat=waypoint.lat, lon=waypoint.lon, id=waypoint.id)


def waypoint_from_domain(waypoint) -> Waypoint:
    if isinstance(waypoint, NodeWaypoint):
        return Waypoint(
            type=WaypointType.NODE,
            lat=waypoint.lat,
            lon=waypoint.lon,
            node_id=waypoint.node_id,
            id=waypoint.id,
        )
    return Waypoint(
        type=WaypointType.CUSTOM, lat=waypoint.lat, lon=waypoint.lon, id=waypoint.id
    )


def route_to_domain(model: RouteModel) -> Route:
    """Rebuild a Route value; raises ValueError if segments and waypoints disagree"""
    segments = [
        RouteSegment(
            coordinates=tuple(LatLon(c.lat, c.lon) for c in segment.coordinates),
            distance=segment.distance,
        )
        for segment in model.segments
    ]
    profile = None
    stats = None
    if model.elevation_profile is not None and model.elevation_stats is not None:
        profile = [ElevationPoint(**p.model_dump()) for p in model.elevation_profile]
        s = model.elevation_stats
        stats = ElevationStats(
            gain=s.gain,
            loss=s.loss,
            min=float("inf") if s.min is None else s.min,
            max=float("-inf") if s.max is None else s.max,
        )
    return Route(
        [waypoint_to_domain(w) for w in model.waypoints], segments, profile, stats
    )


def _finite_or_none(value: float) -> Optional[float]:
    return None if value in (float("inf"), float("-inf")) else value


def route_from_domain(route: Optional[Route]) -> Optional[RouteModel]:
    if route is None:
        return None

    profile = None
    stats = None
    if route.elevation_profile is not None:
        profile = [
            ElevationPointModel(
                distance=p.distance, elevation=p.elevation, lat=p.lat, lon=p.lon
            )
            for p in route.elevation_profile
        ]
    if route.elevation_stats is not None:
        s = route.elevation_stats
        stats = ElevationStatsModel(
            gain=s.gain, loss=s.loss, min=_finite_or_none(s.min), max=_finite_or_none(s.max)
        )

    return RouteModel(
        waypoints=[waypoint_from_domain(w) for w in route.waypoints],
        segments=[
            Segment(
                coordinates=[Coordinate(lat=c.lat, lon=c.lon) for c in segment.coordinates],
                distance=segment.distance,
            )
            for segment in route.segments
        ],
        total_distance=route.total_distance,
        elevation_profile=profile,
        elevation_stats=stats,
    )
