"""Response models for track listing and store status endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .tracks import BalloonPoint, BalloonTrack


class TrackSummary(BaseModel):
    """Compact view of a track for listings."""

    id: str
    point_count: int = Field(..., description="Number of retained points")
    score: Optional[float] = Field(
        default=None, description="Mean drift consistency, if enriched",
    )
    last: Optional[BalloonPoint] = None
    points: list[BalloonPoint] = Field(
        default_factory=list, description="Points thinned for the requested zoom",
    )

    @classmethod
    def from_track(
        cls, track: BalloonTrack, points: list[BalloonPoint] | None = None
    ) -> "TrackSummary":
        return cls(
            id=track.id,
            point_count=len(track.points),
            score=track.score,
            last=track.last,
            points=points if points is not None else [],
        )


class StoreStatus(BaseModel):
    """Current state of the in-memory track set."""

    track_count: int
    selected_id: Optional[str] = None
    last_updated: Optional[datetime] = None
    last_error: Optional[str] = None
    wind_cache_size: int = 0
    wind_requests: int = 0


class RefreshResult(BaseModel):
    track_count: int
    last_updated: Optional[datetime] = None
    last_error: Optional[str] = None


__all__ = ["RefreshResult", "StoreStatus", "TrackSummary"]
