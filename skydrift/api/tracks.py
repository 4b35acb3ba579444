"""Track listing, selection and enrichment endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from skydrift.ingestors import WindService
from skydrift.models import (
    BalloonTrack,
    ChartPoint,
    LeaderboardItem,
    RefreshResult,
    StoreStatus,
    TrackSummary,
)
from skydrift.services import TrackStore, chart_series, thin_points

from .deps import get_store, get_wind_service

router = APIRouter(prefix="/api/v1", tags=["tracks"])


def _require_track(store: TrackStore, track_id: str) -> BalloonTrack:
    track = store.get(track_id)
    if track is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown track {track_id}",
        )
    return track


@router.get("/tracks", response_model=list[TrackSummary], summary="List tracks")
async def list_tracks(
    q: Optional[str] = Query(default=None, description="Balloon number to search for"),
    limit: Optional[int] = Query(default=None, ge=0),
    zoom: Optional[float] = Query(default=None, description="Map zoom for point thinning"),
    store: TrackStore = Depends(get_store),
) -> list[TrackSummary]:
    return [
        TrackSummary.from_track(track, thin_points(track.points, zoom))
        for track in store.list_tracks(query=q, limit=limit)
    ]


@router.get("/tracks/{track_id}", response_model=BalloonTrack, summary="Get a track")
async def get_track(track_id: str, store: TrackStore = Depends(get_store)) -> BalloonTrack:
    return _require_track(store, track_id)


@router.post(
    "/tracks/{track_id}/select",
    response_model=BalloonTrack,
    summary="Select a track and enrich it with wind",
)
async def select_track(
    track_id: str, store: TrackStore = Depends(get_store)
) -> BalloonTrack:
    _require_track(store, track_id)
    # Selection mutates the stored track in place; the response reflects the enrichment.
    await store.select(track_id)
    return _require_track(store, track_id)


@router.get(
    "/tracks/{track_id}/series",
    response_model=list[ChartPoint],
    summary="Chart series for the latest points of a track",
)
async def get_series(
    track_id: str, store: TrackStore = Depends(get_store)
) -> list[ChartPoint]:
    return chart_series(_require_track(store, track_id))


@router.get("/leaderboard", response_model=list[LeaderboardItem], summary="Drift leaderboard")
async def leaderboard(
    limit: int = Query(default=10, ge=1, le=100),
    store: TrackStore = Depends(get_store),
) -> list[LeaderboardItem]:
    return store.leaderboard(limit=limit)


@router.post("/refresh", response_model=RefreshResult, summary="Reload all 24 hours")
async def refresh(store: TrackStore = Depends(get_store)) -> RefreshResult:
    tracks = await store.reload()
    return RefreshResult(
        track_count=len(tracks),
        last_updated=store.last_updated,
        last_error=store.last_error,
    )


@router.get("/status", response_model=StoreStatus, summary="Track store status")
async def store_status(
    store: TrackStore = Depends(get_store),
    wind_service: WindService = Depends(get_wind_service),
) -> StoreStatus:
    return StoreStatus(
        track_count=len(store.tracks),
        selected_id=store.selected_id,
        last_updated=store.last_updated,
        last_error=store.last_error,
        wind_cache_size=wind_service.cache_size,
        wind_requests=wind_service.request_count,
    )
