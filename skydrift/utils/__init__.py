"""Small numeric and geodesy helpers shared across SkyDrift."""

from .geo import angle_diff, bearing, consistency, haversine, planar_distance
from .numbers import coerce_number

__all__ = [
    "angle_diff",
    "bearing",
    "coerce_number",
    "consistency",
    "haversine",
    "planar_distance",
]
