from typing import Optional, Sequence

import gpxpy.gpx

GPX_CREATOR = "OSM Hiking Route Planner"


def route_to_gpx(
    route,
    elevations: Optional[Sequence[float]] = None,
    name: str = "Hiking Route",
) -> str:
    """
    Write the route polyline as a single GPX 1.1 track.
    elevations, when given, must line up with route.collect_coordinates().
    """
    coordinates = route.collect_coordinates()
    if elevations is not None and len(elevations) != len(coordinates):
        raise ValueError(
            f"Got {len(elevations)} elevations for {len(coordinates)} coordinates"
        )

    gpx = gpxpy.gpx.GPX()
    gpx.creator = GPX_CREATOR
    gpx.name = name
    gpx.description = f"Total distance: {route.total_distance / 1000:.2f} km"

    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for i, coord in enumerate(coordinates):
        elevation = round(elevations[i], 1) if elevations is not None else None
        segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=coord.lat, longitude=coord.lon, elevation=elevation
            )
        )

    return gpx.to_xml(version="1.1")
