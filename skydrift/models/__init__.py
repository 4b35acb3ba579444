"""Pydantic models for SkyDrift."""

from .status import RefreshResult, StoreStatus, TrackSummary
from .tracks import BalloonPoint, BalloonTrack, ChartPoint, LeaderboardItem
from .weather import WindObservation

__all__ = [
    "BalloonPoint",
    "BalloonTrack",
    "ChartPoint",
    "LeaderboardItem",
    "RefreshResult",
    "StoreStatus",
    "TrackSummary",
    "WindObservation",
]
