"""Hourly balloon position feed ingestion."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any

import httpx

from skydrift.config import settings

logger = logging.getLogger("skydrift.ingestors.feed")

HOURS = range(24)


def hour_label(hour: int) -> str:
    return f"{hour:02d}"


@dataclass
class HourFetchResult:
    """Outcome of fetching one hour of positions from the feed."""

    hour: int
    payload: Any = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FeedIngestor:
    """Fetch the rolling 24 hours of balloon positions."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.feed_base_url).rstrip("/")
        self.timeout = settings.feed_timeout if timeout is None else timeout
        self.user_agent = user_agent or settings.feed_user_agent
        self.transport = transport

    def hour_url(self, hour: int) -> str:
        return f"{self.base_url}/{hour_label(hour)}.json"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": self.user_agent},
        )

    async def fetch_hour(
        self, hour: int, client: httpx.AsyncClient | None = None
    ) -> HourFetchResult:
        """Fetch a single hour; failures are returned, never raised."""

        if client is None:
            async with self._client() as owned:
                return await self._get_hour(owned, hour)
        return await self._get_hour(client, hour)

    async def _get_hour(self, client: httpx.AsyncClient, hour: int) -> HourFetchResult:
        url = self.hour_url(hour)
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Feed request for hour %s timed out: %s", hour_label(hour), exc)
            return HourFetchResult(hour=hour, error="timeout")
        except httpx.RequestError as exc:
            logger.warning("Feed request for hour %s failed: %s", hour_label(hour), exc)
            return HourFetchResult(hour=hour, error=f"request failed: {exc}")

        if response.status_code >= 400:
            logger.warning(
                "Feed returned HTTP %s for hour %s", response.status_code, hour_label(hour)
            )
            return HourFetchResult(
                hour=hour,
                error=f"hour {hour_label(hour)} HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Feed hour %s is not valid JSON: %s", hour_label(hour), exc)
            return HourFetchResult(
                hour=hour, error="invalid JSON", status_code=response.status_code
            )

        return HourFetchResult(hour=hour, payload=payload, status_code=response.status_code)

    async def fetch_all(self) -> list[HourFetchResult]:
        """Fetch all 24 hours concurrently, in hour order."""

        async with self._client() as client:
            results = await asyncio.gather(
                *(self.fetch_hour(hour, client=client) for hour in HOURS)
            )
        failed = [result.hour for result in results if not result.ok]
        if failed:
            logger.warning(
                "Feed fetch failed for %s of %s hours: %s",
                len(failed),
                len(results),
                ", ".join(hour_label(hour) for hour in failed),
            )
        return list(results)

    async def load_all_24h(self) -> list[Any]:
        """Payloads of the hours that were fetched successfully.

        Library convenience for callers that do not need per-hour errors;
        the track store uses ``fetch_all`` directly.
        """

        return [result.payload for result in await self.fetch_all() if result.ok]


__all__ = ["FeedIngestor", "HourFetchResult", "HOURS", "hour_label"]
