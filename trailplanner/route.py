from typing import List, Optional, Sequence, Tuple

from .domain import (
    ElevationPoint,
    ElevationStats,
    LatLon,
    NodeWaypoint,
    RouteSegment,
    RouteWaypoint,
)

# Tolerance in degrees when matching a waypoint against segment geometry
COORDINATE_EPSILON = 1e-9
# Tolerances in degrees when joining consecutive segments
JOINT_LON_EPSILON = 1e-6
JOINT_LAT_EPSILON = 1e-7


def marker_segment(waypoint: RouteWaypoint) -> RouteSegment:
    """Degenerate single-point segment standing for the first waypoint"""
    return RouteSegment(coordinates=(LatLon(waypoint.lat, waypoint.lon),), distance=0.0)


def route_with_fallback(router, from_waypoint, to_waypoint) -> RouteSegment:
    """
    Connect two waypoints through the graph when both are node waypoints,
    falling back to a straight line when routing is impossible. Node ids the
    router does not know (e.g. from a previously loaded area) are not routed.
    """
    if (
        isinstance(from_waypoint, NodeWaypoint)
        and isinstance(to_waypoint, NodeWaypoint)
        and router.get_node(from_waypoint.node_id) is not None
        and router.get_node(to_waypoint.node_id) is not None
    ):
        segment = router.route(from_waypoint.node_id, to_waypoint.node_id)
        if segment is not None:
            return segment
    return router.create_straight_segment(from_waypoint, to_waypoint)


def _coordinate_matches(coord: LatLon, waypoint: RouteWaypoint) -> bool:
    return (
        abs(coord.lat - waypoint.lat) <= COORDINATE_EPSILON
        and abs(coord.lon - waypoint.lon) <= COORDINATE_EPSILON
    )


class Route:
    """
    Ordered waypoints plus the segments connecting them.

    segments[0] is a zero-length marker for the first waypoint and
    segments[i] connects waypoints[i - 1] to waypoints[i]. Every operation
    returns a new Route; instances are never edited in place.
    """

    def __init__(
        self,
        waypoints: Sequence[RouteWaypoint],
        segments: Sequence[RouteSegment],
        elevation_profile: Optional[Sequence[ElevationPoint]] = None,
        elevation_stats: Optional[ElevationStats] = None,
    ):
        self._waypoints = tuple(waypoints)
        self._segments = tuple(segments)
        self._elevation_profile = (
            tuple(elevation_profile) if elevation_profile is not None else None
        )
        self._elevation_stats = elevation_stats
        self._validate()
        self._total_distance = sum(segment.distance for segment in self._segments)

    def _validate(self):
        """Validate the route structure"""
        if len(self._segments) != len(self._waypoints):
            raise ValueError(
                f"Route needs one segment per waypoint, got {len(self._segments)} "
                f"segments for {len(self._waypoints)} waypoints"
            )

    @classmethod
    def empty(cls) -> "Route":
        return cls([], [])

    @classmethod
    def from_waypoints(
        cls,
        waypoints: Sequence[RouteWaypoint],
        router,
        elevation_profile=None,
        elevation_stats=None,
    ) -> "Route":
        """Build a route from scratch, routing every connection"""
        segments = []
        for i, waypoint in enumerate(waypoints):
            if i == 0:
                segments.append(marker_segment(waypoint))
            else:
                segments.append(route_with_fallback(router, waypoints[i - 1], waypoint))
        return cls(waypoints, segments, elevation_profile, elevation_stats)

    @property
    def waypoints(self) -> Tuple[RouteWaypoint, ...]:
        return self._waypoints

    @property
    def segments(self) -> Tuple[RouteSegment, ...]:
        return self._segments

    @property
    def total_distance(self) -> float:
        return self._total_distance

    @property
    def elevation_profile(self) -> Optional[Tuple[ElevationPoint, ...]]:
        return self._elevation_profile

    @property
    def elevation_stats(self) -> Optional[ElevationStats]:
        return self._elevation_stats

    @property
    def is_empty(self) -> bool:
        return not self._waypoints

    def __len__(self):
        return len(self._waypoints)

    def __repr__(self):
        return (
            f"Route(waypoints={len(self._waypoints)}, "
            f"total_distance={self._total_distance:.1f})"
        )

    def with_elevation(
        self, profile: Sequence[ElevationPoint], stats: ElevationStats
    ) -> "Route":
        return Route(self._waypoints, self._segments, profile, stats)

    def find_insertion_index(self, waypoint: RouteWaypoint) -> int:
        """
        Index at which a new waypoint should be inserted: before the waypoint
        whose incoming segment passes through it, otherwise at the end.
        Only node waypoints can split a segment, and only at interior points.
        """
        if isinstance(waypoint, NodeWaypoint):
            for i in range(1, len(self._segments)):
                interior = self._segments[i].coordinates[1:-1]
                if any(_coordinate_matches(coord, waypoint) for coord in interior):
                    return i
        return len(self._waypoints)

    def add_waypoint(self, waypoint: RouteWaypoint, router) -> "Route":
        index = self.find_insertion_index(waypoint)
        waypoints = list(self._waypoints)
        waypoints.insert(index, waypoint)

        segments: List[RouteSegment] = list(self._segments[:index])
        if index == 0:
            segments.append(marker_segment(waypoint))
        else:
            segments.append(route_with_fallback(router, waypoints[index - 1], waypoint))

        if index < len(self._waypoints):
            # Split: the old incoming segment of the next waypoint is replaced
            segments.append(route_with_fallback(router, waypoint, waypoints[index + 1]))
            segments.extend(self._segments[index + 1 :])

        return Route(waypoints, segments)

    def delete_waypoint(self, index: int, router) -> "Route":
        if not 0 <= index < len(self._waypoints):
            raise IndexError(f"No waypoint at index {index}")
        if len(self._waypoints) == 1:
            return Route.empty()

        waypoints = list(self._waypoints)
        del waypoints[index]

        if index == 0:
            segments = [marker_segment(waypoints[0]), *self._segments[2:]]
        elif index == len(self._waypoints) - 1:
            segments = list(self._segments[:index])
        else:
            reconnect = route_with_fallback(
                router, waypoints[index - 1], waypoints[index]
            )
            segments = [
                *self._segments[:index],
                reconnect,
                *self._segments[index + 2 :],
            ]

        return Route(waypoints, segments)

    def move_waypoint(self, index: int, waypoint: RouteWaypoint, router) -> "Route":
        """Replace the waypoint at index and reroute its two connections"""
        if not 0 <= index < len(self._waypoints):
            raise IndexError(f"No waypoint at index {index}")
        waypoints = list(self._waypoints)
        waypoints[index] = waypoint
        moved = Route(waypoints, self._segments)
        return moved.recalculate_affected_segments(index, router)

    def recalculate_affected_segments(self, index: int, router) -> "Route":
        """
        Recompute the connections to the previous and next waypoint of the
        waypoint at index; every other segment is reused as is.
        """
        if not 0 <= index < len(self._waypoints):
            raise IndexError(f"No waypoint at index {index}")

        waypoints = self._waypoints
        segments = list(self._segments)

        if index == 0:
            # The marker only mirrors the first waypoint, nothing to route
            segments[0] = marker_segment(waypoints[0])
        else:
            segments[index] = route_with_fallback(
                router, waypoints[index - 1], waypoints[index]
            )

        if index + 1 < len(waypoints):
            segments[index + 1] = route_with_fallback(
                router, waypoints[index], waypoints[index + 1]
            )

        return Route(waypoints, segments)

    def recalculate_all_segments(self, router) -> "Route":
        """Rebuild every segment, e.g. after the router has been replaced"""
        return Route.from_waypoints(self._waypoints, router)

    def collect_coordinates(self) -> List[LatLon]:
        """
        Full polyline across all segments. A segment's first coordinate is
        dropped when it repeats the previous segment's last one.
        """
        coordinates: List[LatLon] = []
        for segment in self._segments:
            if coordinates and segment.coordinates:
                prev, first = coordinates[-1], segment.coordinates[0]
                if (
                    abs(prev.lon - first.lon) < JOINT_LON_EPSILON
                    and abs(prev.lat - first.lat) < JOINT_LAT_EPSILON
                ):
                    coordinates.extend(segment.coordinates[1:])
                    continue
            coordinates.extend(segment.coordinates)
        return coordinates
