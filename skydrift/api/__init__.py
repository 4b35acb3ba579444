"""API routers for SkyDrift."""

from fastapi import APIRouter

from .health import router as health_router
from .tracks import router as tracks_router
from .treasure import router as treasure_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(treasure_router)
api_router.include_router(tracks_router)

__all__ = ["api_router"]
