from typing import Optional

from . import config
from .domain import BBox, NodeWaypoint, create_custom_waypoint, create_node_waypoint
from .geodesy import point_in_bbox
from .route import Route


def would_clear_route(route: Optional[Route], bbox: BBox) -> bool:
    """True if loading data for bbox would leave any waypoint outside it"""
    if route is None or route.is_empty:
        return False
    return not all(point_in_bbox(wp.lat, wp.lon, bbox) for wp in route.waypoints)


def preserve_route(
    route: Optional[Route],
    router,
    bbox: BBox,
    max_snap_distance: float = config.PRESERVE_SNAP_DISTANCE_M,
) -> Optional[Route]:
    """
    Carry a route over to a freshly loaded router.

    Node waypoints are re-bound to the nearest node of the new graph (the old
    node ids mean nothing there); custom waypoints are kept. Returns None when
    the route does not fit in the new bounding box or is empty.
    """
    if route is None or route.is_empty or would_clear_route(route, bbox):
        return None

    waypoints = []
    for waypoint in route.waypoints:
        if not isinstance(waypoint, NodeWaypoint):
            waypoints.append(waypoint)
            continue

        nearest = router.find_nearest_node(waypoint.lat, waypoint.lon, max_snap_distance)
        if nearest is None:
            waypoints.append(create_custom_waypoint(waypoint.lat, waypoint.lon))
        else:
            waypoints.append(
                create_node_waypoint(nearest.node.lat, nearest.node.lon, nearest.node_id)
            )

    return Route(waypoints, route.segments).recalculate_all_segments(router)
