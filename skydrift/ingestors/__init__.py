"""Data ingestors for SkyDrift."""

from .feed import FeedIngestor, HourFetchResult
from .wind import WindService, cache_key

__all__ = [
    "FeedIngestor",
    "HourFetchResult",
    "WindService",
    "cache_key",
]
