"""Pass-through proxy for single hours of the balloon position feed."""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from skydrift.ingestors import FeedIngestor

from .deps import get_feed

router = APIRouter(prefix="/api/treasure", tags=["feed"])

logger = logging.getLogger("skydrift.api.treasure")

HOUR_RE = re.compile(r"[0-9]{1,2}")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.get("/{hour}", summary="Fetch one hour of balloon positions")
async def get_hour(hour: str, feed: FeedIngestor = Depends(get_feed)) -> JSONResponse:
    """Relay the upstream JSON for ``hour`` (00-23), or the upstream error status."""

    if not HOUR_RE.fullmatch(hour) or int(hour) > 23:
        return JSONResponse({"error": f"Unknown hour {hour}"}, status_code=404)

    result = await feed.fetch_hour(int(hour))
    if result.ok:
        return JSONResponse(result.payload, headers=CORS_HEADERS)

    if result.status_code is not None and result.status_code >= 400:
        return JSONResponse(
            {"error": f"Failed to fetch data for hour {hour}: {result.status_code}"},
            status_code=result.status_code,
        )

    logger.error("Feed proxy error for hour %s: %s", hour, result.error)
    return JSONResponse({"error": "Internal server error"}, status_code=500)
