"""
🧭 VidShare • API Router Aggregator
==================================

Quick usage
-----------
    from app.api.routers import build_api_router
    app.include_router(build_api_router(), prefix=settings.API_PREFIX)

Auth and rate limits live in the child routers; this layer only composes.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .public import router as public_router
from .videos import router as videos_router


def build_api_router() -> APIRouter:
    """
    Compose the API surface:
      • `/auth/*`            register, login, me
      • `/videos/share|thumbnail/*`  public views
      • `/videos*`           owner endpoints
    """
    api = APIRouter()
    api.include_router(auth_router)
    api.include_router(public_router)
    api.include_router(videos_router)
    return api


__all__ = ["build_api_router", "auth_router", "public_router", "videos_router"]
