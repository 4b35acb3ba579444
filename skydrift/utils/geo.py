"""Geodesy helpers for distances and headings between coordinates."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in meters."""

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from the first point to the second, in [0, 360)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lon = math.radians(lon2 - lon1)
    y = math.sin(d_lon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def angle_diff(a: float, b: float) -> float:
    """Smallest rotation between two headings, in [0, 180]."""

    d = abs(a - b) % 360.0
    return 360.0 - d if d > 180.0 else d


def consistency(bearing_deg: float, wind_dir_deg: float) -> float:
    """Alignment of drift and wind: 1 when aligned, -1 when opposed."""

    return math.cos(math.radians(angle_diff(bearing_deg, wind_dir_deg)))


def planar_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    # Euclidean distance on raw degrees.
    return math.hypot(lat1 - lat2, lon1 - lon2)


__all__ = [
    "EARTH_RADIUS_M",
    "angle_diff",
    "bearing",
    "consistency",
    "haversine",
    "planar_distance",
]
