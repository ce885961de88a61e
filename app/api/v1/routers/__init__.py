"""
🧭 ReelShare • API v1 Router Aggregator
======================================

Exports the combined `router` and each sub-router.

Quick usage
-----------
    from app.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Layout
------
- Share recipients (token): `/shares/*`, `/comments/list|create`,
  `/videos/{id}/download`
- Owners (session): `/shares/create*`, `/comments/*-owner`,
  `/comments/toggle-resolved`, `/owner/*`
- Transcoder callbacks (HMAC): `/webhooks/transcoder`

Auth lives in the child routers; this module only composes them.
"""

from fastapi import APIRouter

from .comments import router as comments_router
from .galleries import router as galleries_router
from .owner_storage import router as storage_router
from .shares import router as shares_router
from .videos import router as videos_router
from .webhooks import router as webhooks_router


def build_v1_router() -> APIRouter:
    """Compose the API v1 surface into a single `APIRouter`."""
    r = APIRouter()
    r.include_router(shares_router)
    r.include_router(comments_router)
    r.include_router(videos_router)
    r.include_router(galleries_router)
    r.include_router(storage_router)
    r.include_router(webhooks_router)
    return r


router = build_v1_router()


__all__ = [
    "router",
    "build_v1_router",
    "shares_router",
    "comments_router",
    "videos_router",
    "galleries_router",
    "storage_router",
    "webhooks_router",
]
