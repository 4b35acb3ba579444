"""Attach wind observations and drift consistency to balloon tracks."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Protocol

from skydrift.config import settings
from skydrift.models.tracks import BalloonPoint, BalloonTrack
from skydrift.models.weather import WindObservation
from skydrift.utils.geo import consistency, planar_distance

logger = logging.getLogger("skydrift.enrichment")


class WindProvider(Protocol):
    """Anything that can answer wind lookups for a point in space and time."""

    async def get_wind(self, lat: float, lon: float, ts: float) -> WindObservation:
        """Return the wind near the location, all-absent when unavailable."""


def _apply_wind(
    point: BalloonPoint,
    wind_speed: Optional[float],
    wind_dir: Optional[float],
    temp: Optional[float],
) -> None:
    point.wind_speed = wind_speed
    point.wind_dir = wind_dir
    point.temp = temp
    if point.bearing is not None and wind_dir is not None:
        point.consistency = consistency(point.bearing, wind_dir)


def propagate_wind(points: list[BalloonPoint]) -> int:
    """Copy wind from the nearest enriched point onto every point without wind.

    Nearness is planar distance on raw degrees; on ties the first enriched
    point in track order wins. Returns the number of points filled.
    """

    enriched = [point for point in points if point.has_wind]
    if not enriched:
        return 0

    filled = 0
    for point in points:
        if point.has_wind:
            continue
        nearest = min(
            enriched,
            key=lambda source: planar_distance(point.lat, point.lon, source.lat, source.lon),
        )
        _apply_wind(point, nearest.wind_speed, nearest.wind_dir, nearest.temp)
        filled += 1
    return filled


class WindEnricher:
    """On-demand wind enrichment of tracks through a shared wind provider."""

    def __init__(self, wind_service: WindProvider, *, sample_size: int | None = None) -> None:
        self.wind_service = wind_service
        self.sample_size = settings.wind_sample_size if sample_size is None else sample_size

    async def enrich_selected(self, track: BalloonTrack) -> None:
        """Enrich the most recent points of a track, then fill in the rest.

        Does nothing when the track is empty or already carries wind data.
        Lookups run one after another so they respect the provider's pacing.
        """

        points = track.points
        if not points or track.has_wind:
            return

        sample = points[max(0, len(points) - self.sample_size):]
        hits = 0
        for point in sample:
            observation = await self.wind_service.get_wind(point.lat, point.lon, point.ts)
            if not observation.available:
                continue
            _apply_wind(point, observation.wind_speed, observation.wind_dir, observation.temp)
            hits += 1
            if point.bearing is None:
                logger.debug(
                    "No bearing for consistency on %s at ts=%s", track.id, point.ts
                )

        if not hits:
            logger.info("No wind data available for %s; will retry on next selection", track.id)
            return

        filled = propagate_wind(points)
        logger.info(
            "Enriched %s: %s sampled, %s propagated", track.id, hits, filled
        )

    async def enrich_tracks(
        self,
        tracks: Iterable[BalloonTrack],
        *,
        max_tracks: int = 20,
        concurrency: int = 5,
    ) -> int:
        """Sample the last point of up to ``max_tracks`` tracks concurrently.

        At most ``concurrency`` lookups are in flight at once. Returns the
        number of sampled points that received wind.
        """

        selected = [
            track for track in list(tracks)[:max_tracks] if track.points and not track.has_wind
        ]
        semaphore = asyncio.Semaphore(concurrency)

        async def sample_last(track: BalloonTrack) -> bool:
            point = track.points[-1]
            async with semaphore:
                observation = await self.wind_service.get_wind(
                    point.lat, point.lon, point.ts
                )
            if not observation.available:
                return False
            _apply_wind(point, observation.wind_speed, observation.wind_dir, observation.temp)
            return True

        results = await asyncio.gather(*(sample_last(track) for track in selected))
        for track in selected:
            propagate_wind(track.points)

        enriched = sum(1 for hit in results if hit)
        logger.info("Batch wind enrichment: %s of %s tracks", enriched, len(selected))
        return enriched


__all__ = ["WindEnricher", "WindProvider", "propagate_wind"]
