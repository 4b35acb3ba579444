"""In-memory holder of the current 24h track set."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from typing import Optional

from skydrift.config import settings
from skydrift.ingestors.feed import FeedIngestor
from skydrift.models.tracks import BalloonPoint, BalloonTrack, ChartPoint, LeaderboardItem
from skydrift.services.enrichment import WindEnricher
from skydrift.services.track_builder import build_tracks

logger = logging.getLogger("skydrift.track_store")

SEARCH_PREFIX = "balloon_"
CHART_POINTS = 120
MS_TO_KMH = 3.6


def thin_points(points: list[BalloonPoint], zoom: Optional[float]) -> list[BalloonPoint]:
    """Reduce point density for low map zoom levels, always keeping the last point."""

    if zoom is None or zoom >= 8:
        return list(points)
    if zoom <= 2:
        step = 10
    elif zoom < 4:
        step = 5
    else:
        step = 2
    last = len(points) - 1
    return [p for i, p in enumerate(points) if i % step == 0 or i == last]


def chart_series(track: BalloonTrack, limit: int = CHART_POINTS) -> list[ChartPoint]:
    return [
        ChartPoint(
            ts=p.ts,
            speed_kmh=p.speed * MS_TO_KMH if p.speed is not None else None,
            wind=p.wind_speed,
            temp=p.temp,
            consistency=p.consistency,
        )
        for p in track.points[-limit:]
    ]


class TrackStore:
    """Keeps the latest tracks and coordinates reloads and wind enrichment."""

    def __init__(
        self,
        feed: FeedIngestor,
        enricher: WindEnricher,
        *,
        enable_wind_data: bool | None = None,
        batch_wind_tracks: int | None = None,
    ) -> None:
        self.feed = feed
        self.enricher = enricher
        self.enable_wind_data = (
            settings.enable_wind_data if enable_wind_data is None else enable_wind_data
        )
        self.batch_wind_tracks = (
            settings.batch_wind_tracks if batch_wind_tracks is None else batch_wind_tracks
        )
        self.tracks: dict[str, BalloonTrack] = {}
        self.selected_id: str | None = None
        self.last_updated: datetime | None = None
        self.last_error: str | None = None

    async def reload(self) -> dict[str, BalloonTrack]:
        """Fetch all 24 hours and replace the current tracks wholesale."""

        try:
            results = await self.feed.fetch_all()
            payloads = [result.payload for result in results if result.ok]
            tracks = build_tracks(payloads)
        except Exception as exc:
            logger.exception("Track reload failed")
            self.last_error = str(exc) or exc.__class__.__name__
            return self.tracks

        self.tracks = tracks
        self.last_updated = datetime.now(tz=timezone.utc)
        if payloads:
            self.last_error = None
        else:
            self.last_error = "; ".join(r.error for r in results if r.error) or "no data"
        if self.selected_id not in self.tracks:
            self.selected_id = next(iter(self.tracks), None)
        logger.info(
            "Reloaded %s tracks from %s of %s hours", len(tracks), len(payloads), len(results)
        )
        if self.enable_wind_data and self.batch_wind_tracks > 0 and tracks:
            await self.enricher.enrich_tracks(
                tracks.values(), max_tracks=self.batch_wind_tracks
            )
        return tracks

    async def run_periodic(self, interval: float | None = None) -> None:
        """Reload now and then on a fixed interval until cancelled."""

        if interval is None:
            interval = settings.reload_interval_seconds
        try:
            while True:
                await self.reload()
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Scheduled reload cancelled")
            raise

    def get(self, track_id: str) -> BalloonTrack | None:
        return self.tracks.get(track_id)

    def list_tracks(
        self, query: str | None = None, limit: int | None = None
    ) -> list[BalloonTrack]:
        """Tracks in load order, optionally filtered by balloon number and capped."""

        tracks = list(self.tracks.values())
        if query and query.strip():
            wanted = SEARCH_PREFIX + query.lower().strip()
            tracks = [track for track in tracks if track.id == wanted]
        if limit is not None:
            tracks = tracks[: max(0, limit)]
        return tracks

    async def select(self, track_id: str) -> BalloonTrack | None:
        """Mark a track as selected and enrich it with wind when enabled."""

        track = self.tracks.get(track_id)
        if track is None:
            return None
        self.selected_id = track_id
        if self.enable_wind_data:
            await self.enricher.enrich_selected(track)
        return track

    def leaderboard(self, limit: int = 10) -> list[LeaderboardItem]:
        items: list[LeaderboardItem] = []
        for track in self.tracks.values():
            score = track.score
            if score is not None:
                items.append(LeaderboardItem(id=track.id, avg=score, last=track.last))
        items.sort(key=lambda item: item.avg, reverse=True)
        return items[:limit]


__all__ = ["TrackStore", "chart_series", "thin_points"]
