"""
Elevation profile for a route.

The route polyline is resampled into equally spaced points, elevations are
looked up in batches from an elevation source, and the resulting series is
turned into a distance/elevation profile plus gain/loss/min/max statistics.
A failing batch is filled with zeros so a degraded profile is still returned.
"""

from typing import List, Optional, Protocol, Sequence

import httpx
import numpy as np

from . import config
from .domain import ElevationPoint, ElevationStats, LatLon
from .geodesy import path_distances

ELEVATION_SAMPLE_POINTS = 70
ELEVATION_BATCH_SIZE = 100  # maximum locations per elevation request


class ElevationSource(Protocol):
    async def fetch_batch(self, points: Sequence[LatLon]) -> List[float]:
        """Return one elevation in meters per point, in the same order"""
        ...


class OpenElevationClient:
    """Elevation source backed by the Open-Elevation lookup API"""

    def __init__(self, url: str = None, timeout: float = None):
        self.url = url or config.ELEVATION_API_URL
        self.timeout = timeout or config.ELEVATION_TIMEOUT_S

    async def fetch_batch(self, points: Sequence[LatLon]) -> List[float]:
        locations = [{"latitude": p.lat, "longitude": p.lon} for p in points]
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json={"locations": locations})
            response.raise_for_status()
            data = response.json()
        return [float(result["elevation"]) for result in data["results"]]


def collect_route_coordinates(route) -> List[LatLon]:
    """All coordinates of a route in order, without repeated segment joints"""
    return route.collect_coordinates()


def _interpolate(p1: LatLon, p2: LatLon, fraction: float) -> LatLon:
    return LatLon(
        p1.lat + (p2.lat - p1.lat) * fraction,
        p1.lon + (p2.lon - p1.lon) * fraction,
    )


def subdivide_path_equally(
    coordinates: Sequence[LatLon], num_points: int = ELEVATION_SAMPLE_POINTS
) -> List[LatLon]:
    """
    Resample a path into num_points points equally spaced along its length.
    The first and last points are the original endpoints; a path of zero
    length collapses to its first point.
    """
    if len(coordinates) < 2:
        return list(coordinates)
    if num_points < 2:
        return [coordinates[0]]

    distances = np.asarray(path_distances(coordinates))
    total_distance = float(distances[-1])
    if total_distance == 0:
        return [coordinates[0]]

    spacing = total_distance / (num_points - 1)
    result = []
    for i in range(num_points):
        if i == 0:
            result.append(coordinates[0])
            continue
        if i == num_points - 1:
            result.append(coordinates[-1])
            continue

        target = i * spacing
        # First original point at or beyond the target closes the bracket
        segment_index = max(int(np.searchsorted(distances, target, side="left")) - 1, 0)
        segment_index = min(segment_index, len(coordinates) - 2)

        segment_start = distances[segment_index]
        segment_length = distances[segment_index + 1] - segment_start
        if segment_length == 0:
            result.append(coordinates[segment_index])
        else:
            fraction = float((target - segment_start) / segment_length)
            result.append(
                _interpolate(
                    coordinates[segment_index], coordinates[segment_index + 1], fraction
                )
            )
    return result


async def fetch_elevations(
    points: Sequence[LatLon],
    source: ElevationSource,
    batch_size: int = ELEVATION_BATCH_SIZE,
) -> List[float]:
    """Look up elevations batch by batch; a failed batch becomes zeros"""
    elevations: List[float] = []
    for start in range(0, len(points), batch_size):
        batch = list(points[start : start + batch_size])
        try:
            results = await source.fetch_batch(batch)
            if len(results) != len(batch):
                raise ValueError(
                    f"expected {len(batch)} elevations, got {len(results)}"
                )
            elevations.extend(float(e) for e in results)
        except Exception as e:
            print(f"[Elevation] Failed to fetch elevations: {e}")
            elevations.extend(0.0 for _ in batch)
    return elevations


def calculate_subdivided_distances(total_distance: float, num_points: int) -> List[float]:
    """Uniform cumulative distances for num_points equally spaced samples"""
    if num_points < 2:
        return [0.0] * num_points
    spacing = total_distance / (num_points - 1)
    return [i * spacing for i in range(num_points)]


def calculate_elevation_stats(elevations: Sequence[float]) -> ElevationStats:
    if len(elevations) == 0:
        return ElevationStats(gain=0.0, loss=0.0, min=float("inf"), max=float("-inf"))

    series = np.asarray(elevations, dtype=float)
    deltas = np.diff(series)
    return ElevationStats(
        gain=float(deltas[deltas > 0].sum()),
        loss=float(-deltas[deltas < 0].sum()),
        min=float(series.min()),
        max=float(series.max()),
    )


def build_profile_points(
    coordinates: Sequence[LatLon],
    elevations: Sequence[float],
    distances: Sequence[float],
) -> List[ElevationPoint]:
    return [
        ElevationPoint(
            distance=distances[i], elevation=elevations[i], lat=coord.lat, lon=coord.lon
        )
        for i, coord in enumerate(coordinates)
    ]


async def build_elevation_profile(
    route,
    source: ElevationSource,
    num_points: int = ELEVATION_SAMPLE_POINTS,
    batch_size: int = ELEVATION_BATCH_SIZE,
):
    """
    Compute the elevation profile of a route.
    Returns a copy of the route carrying profile and stats, or None when the
    route is too short to have a profile.
    """
    if len(route.waypoints) < 2:
        return None

    coordinates = collect_route_coordinates(route)
    if len(coordinates) < 2:
        return None

    samples = subdivide_path_equally(coordinates, num_points)
    elevations = await fetch_elevations(samples, source, batch_size)
    distances = calculate_subdivided_distances(
        path_distances(coordinates)[-1], len(samples)
    )

    profile = build_profile_points(samples, elevations, distances)
    return route.with_elevation(profile, calculate_elevation_stats(elevations))
