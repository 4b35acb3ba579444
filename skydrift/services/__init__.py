"""Service-layer helpers for SkyDrift."""

from .enrichment import WindEnricher, WindProvider, propagate_wind
from .track_builder import build_tracks
from .track_store import TrackStore, chart_series, thin_points

__all__ = [
    "TrackStore",
    "WindEnricher",
    "WindProvider",
    "build_tracks",
    "chart_series",
    "propagate_wind",
    "thin_points",
]
