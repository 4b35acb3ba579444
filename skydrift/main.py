from __future__ import annotations

import asyncio
import contextlib
import logging
import time

from fastapi import FastAPI, Request

from skydrift.api import api_router
from skydrift.config import settings
from skydrift.ingestors import FeedIngestor, WindService
from skydrift.services import TrackStore, WindEnricher

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("skydrift")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared services and start the scheduled reload."""

    feed = FeedIngestor()
    wind_service = WindService()
    store = TrackStore(feed, WindEnricher(wind_service))
    app.state.feed = feed
    app.state.wind_service = wind_service
    app.state.track_store = store

    if settings.enable_scheduled_reload:
        app.state.reload_task = asyncio.create_task(
            store.run_periodic(settings.reload_interval_seconds)
        )
        logger.info(
            "Scheduled reload started (every %.0f s)", settings.reload_interval_seconds
        )

    try:
        yield
    finally:
        task = getattr(app.state, "reload_task", None)
        if task:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


app = FastAPI(title="SkyDrift", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "SkyDrift is running"}
