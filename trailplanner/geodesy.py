import math
from typing import List, Sequence

from .domain import BBox, LatLon

EARTH_RADIUS_M = 6371000
EARTH_CIRCUMFERENCE_M = 40075016.686  # equatorial, used by Web Mercator tiles
TILE_SIZE_PX = 256


def distance_meters(p1, p2) -> float:
    """
    Calculate the haversine distance between two points with .lat/.lon.
    Returns distance in meters.
    """
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    dphi = math.radians(p2.lat - p1.lat)
    dlambda = math.radians(p2.lon - p1.lon)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(a, 1.0)))


def bearing_degrees(p1, p2) -> float:
    """Initial bearing from p1 to p2, degrees clockwise from north in [0, 360)"""
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    dlambda = math.radians(p2.lon - p1.lon)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(
        phi2
    ) * math.cos(dlambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def destination_point(origin, distance_m: float, bearing_deg: float) -> LatLon:
    """Point reached travelling distance_m from origin along bearing_deg"""
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(origin.lat)
    lambda1 = math.radians(origin.lon)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta)
        + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    lon = (math.degrees(lambda2) + 540.0) % 360.0 - 180.0
    return LatLon(math.degrees(phi2), lon)


def path_distances(points: Sequence) -> List[float]:
    """Cumulative distances along a path, starting with 0"""
    distances = [0.0]
    for i in range(1, len(points)):
        distances.append(distances[-1] + distance_meters(points[i - 1], points[i]))
    return distances


def polyline_length(points: Sequence) -> float:
    return path_distances(points)[-1] if points else 0.0


def point_in_bbox(lat: float, lon: float, bbox: BBox) -> bool:
    return bbox.south <= lat <= bbox.north and bbox.west <= lon <= bbox.east


def meters_per_pixel(latitude: float, zoom: float) -> float:
    """Horizontal size of one screen pixel in meters (Web Mercator)"""
    return (EARTH_CIRCUMFERENCE_M * math.cos(math.radians(latitude))) / (
        TILE_SIZE_PX * 2**zoom
    )


def pixels_to_meters(pixels: float, latitude: float, zoom: float) -> float:
    return pixels * meters_per_pixel(latitude, zoom)


def meters_to_pixels(meters: float, latitude: float, zoom: float) -> float:
    return meters / meters_per_pixel(latitude, zoom)
