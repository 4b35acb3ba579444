"""Request-scoped access to the services created in the app lifespan."""

from __future__ import annotations

from fastapi import Request

from skydrift.ingestors import FeedIngestor, WindService
from skydrift.services import TrackStore


def get_store(request: Request) -> TrackStore:
    return request.app.state.track_store


def get_feed(request: Request) -> FeedIngestor:
    return request.app.state.feed


def get_wind_service(request: Request) -> WindService:
    return request.app.state.wind_service
