"""Wind enrichment using the Open-Meteo hourly forecast API."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any, Callable

import httpx

from skydrift.config import settings
from skydrift.models.weather import WindObservation
from skydrift.utils.numbers import coerce_number

logger = logging.getLogger("skydrift.ingestors.wind")

HOURLY_FIELDS = "windspeed_10m,winddirection_10m,temperature_2m"
SPATIAL_BUCKETS_PER_DEGREE = 4  # 0.25 degree cells
TIME_BUCKET_SECONDS = 7200

CacheKey = tuple[float, float, int]


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def cache_key(lat: float, lon: float, ts: float) -> CacheKey:
    """Bucket a coordinate and time into the key used by the wind cache."""

    return (
        _round_half_up(lat * SPATIAL_BUCKETS_PER_DEGREE) / SPATIAL_BUCKETS_PER_DEGREE,
        _round_half_up(lon * SPATIAL_BUCKETS_PER_DEGREE) / SPATIAL_BUCKETS_PER_DEGREE,
        math.floor(ts / TIME_BUCKET_SECONDS),
    )


def _closest_index(times: list[Any], ts: float) -> int | None:
    best: int | None = None
    best_diff = math.inf
    for idx, raw in enumerate(times):
        value = coerce_number(raw)
        if value is None:
            continue
        diff = abs(value - ts)
        if diff < best_diff:
            best, best_diff = idx, diff
    return best


def _value_at(values: Any, idx: int) -> float | None:
    if not isinstance(values, list) or idx >= len(values):
        return None
    return coerce_number(values[idx])


class WindService:
    """Cached, rate-limited access to hourly wind observations.

    Observations are cached for the lifetime of the service under 0.25 degree
    by 2 hour buckets. Outgoing requests share one pacing clock, so any two
    requests issued through the same instance are at least
    ``request_interval`` seconds apart, and concurrent misses on the same
    bucket wait on one fetch instead of issuing their own.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        request_interval: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url or settings.weather_base_url
        self.timeout = settings.weather_timeout if timeout is None else timeout
        if request_interval is None:
            request_interval = settings.wind_request_interval_ms / 1000
        self.request_interval = request_interval
        self.transport = transport
        self._clock = clock
        self._cache: dict[CacheKey, WindObservation] = {}
        self._last_request: float | None = None
        self._pending: dict[CacheKey, asyncio.Future[WindObservation]] = {}
        self.request_count = 0

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def cached(self, lat: float, lon: float, ts: float) -> WindObservation | None:
        return self._cache.get(cache_key(lat, lon, ts))

    async def get_wind(self, lat: float, lon: float, ts: float) -> WindObservation:
        key = cache_key(lat, lon, ts)
        hit = self._cache.get(key)
        if hit is not None:
            return hit

        # Concurrent misses on one bucket share a single fetch.
        pending = self._pending.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        pending = asyncio.get_running_loop().create_future()
        self._pending[key] = pending
        observation = WindObservation()
        try:
            await self._wait_for_slot()
            fetched = await self._fetch(lat, lon, ts)
            if fetched is not None:
                observation = self._cache.setdefault(key, fetched)
        finally:
            del self._pending[key]
            pending.set_result(observation)
        return observation

    async def _wait_for_slot(self) -> None:
        now = self._clock()
        slot = now
        if self._last_request is not None:
            slot = max(now, self._last_request + self.request_interval)
        # Reserve the slot before sleeping so interleaved callers queue behind it.
        self._last_request = slot
        if slot > now:
            await asyncio.sleep(slot - now)

    async def _fetch(self, lat: float, lon: float, ts: float) -> WindObservation | None:
        params = {
            "latitude": lat,
            "longitude": lon,
            "hourly": HOURLY_FIELDS,
            "past_days": 1,
            "forecast_days": 1,
            "timeformat": "unixtime",
            "wind_speed_unit": "ms",
        }

        self.request_count += 1
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Weather request timed out: %s", exc)
            return None
        except httpx.RequestError as exc:
            logger.warning("Weather request failed: %s", exc)
            return None

        if response.status_code == 429:
            logger.warning("Weather provider rate limit reached, skipping wind data")
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Weather provider returned HTTP %s: %s", exc.response.status_code, exc
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse weather JSON response: %s", exc)
            return None

        hourly = payload.get("hourly") if isinstance(payload, dict) else None
        if not isinstance(hourly, dict):
            logger.warning("Weather response has no hourly block")
            return None
        times = hourly.get("time")
        if not isinstance(times, list) or not times:
            logger.warning("Weather response has no hourly time series")
            return None

        idx = _closest_index(times, ts)
        if idx is None:
            logger.warning("Weather response has no usable timestamps")
            return None

        observation = WindObservation(
            wind_speed=_value_at(hourly.get("windspeed_10m"), idx),
            wind_dir=_value_at(hourly.get("winddirection_10m"), idx),
            temp=_value_at(hourly.get("temperature_2m"), idx),
        )
        logger.debug("Wind observation for %.3f,%.3f@%s: %s", lat, lon, ts, observation)
        return observation


__all__ = ["WindService", "cache_key"]
