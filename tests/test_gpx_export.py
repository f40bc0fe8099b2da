import gpxpy
import pytest

from trailplanner.domain import CustomWaypoint, NodeWaypoint
from trailplanner.gpx_export import GPX_CREATOR, route_to_gpx
from trailplanner.route import Route


@pytest.fixture
def trail_route(router):
    return Route.from_waypoints(
        [
            NodeWaypoint(50.0, 10.0, "1"),
            NodeWaypoint(50.0004, 10.0, "5"),
            CustomWaypoint(50.0008, 10.0),
        ],
        router,
    )


def test_gpx_track_follows_route(trail_route):
    xml = route_to_gpx(trail_route)
    gpx = gpxpy.parse(xml)

    assert gpx.creator == GPX_CREATOR
    assert gpx.name == "Hiking Route"
    assert len(gpx.tracks) == 1
    assert len(gpx.tracks[0].segments) == 1

    points = gpx.tracks[0].segments[0].points
    coords = trail_route.collect_coordinates()
    assert [(p.latitude, p.longitude) for p in points] == [(c.lat, c.lon) for c in coords]
    assert all(p.elevation is None for p in points)


def test_gpx_description_has_distance(trail_route):
    gpx = gpxpy.parse(route_to_gpx(trail_route, name="Ridge walk"))
    assert gpx.name == "Ridge walk"
    assert gpx.description == f"Total distance: {trail_route.total_distance / 1000:.2f} km"


def test_gpx_with_elevations(trail_route):
    n = len(trail_route.collect_coordinates())
    elevations = [400.04 + i for i in range(n)]

    gpx = gpxpy.parse(route_to_gpx(trail_route, elevations))
    points = gpx.tracks[0].segments[0].points
    assert points[0].elevation == pytest.approx(400.0)
    assert points[-1].elevation == pytest.approx(400.0 + n - 1)


def test_gpx_rejects_misaligned_elevations(trail_route):
    with pytest.raises(ValueError):
        route_to_gpx(trail_route, [100.0])
