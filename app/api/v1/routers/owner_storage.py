# app/api/v1/routers/owner_storage.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 💾 ReelShare · Owner Storage                                             ║
# ║                                                                          ║
# ║ Endpoints:                                                               ║
# ║  - GET  /owner/storage/usage          → used + limit bytes               ║
# ║  - POST /owner/storage/reconcile      → overwrite the cached counter     ║
# ║  - GET  /owner/storage/breakdown      → galleries / largest videos       ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Byte counts are decimal strings; they can exceed 2^53.                   ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.http_utils import json_no_store
from app.core.dependencies import get_storage_accounting
from app.core.security import OwnerContext, get_owner_context
from app.schemas.storage import (
    BreakdownResponse,
    GalleryBucketOut,
    LargestVideoOut,
    ReconcileResponse,
    UsageResponse,
)
from app.services.storage_accounting import StorageAccounting

router = APIRouter(prefix="/owner/storage", tags=["Owner Storage"])


@router.get("/usage", response_model=UsageResponse, summary="Storage used by the org")
async def storage_usage(
    owner: OwnerContext = Depends(get_owner_context),
    accounting: StorageAccounting = Depends(get_storage_accounting),
):
    used = await accounting.usage(owner.org_id)
    return json_no_store(UsageResponse(used_bytes=str(used), limit_bytes=str(accounting.limit_bytes)))


@router.post("/reconcile", response_model=ReconcileResponse, summary="Recompute the storage counter")
async def storage_reconcile(
    owner: OwnerContext = Depends(get_owner_context),
    accounting: StorageAccounting = Depends(get_storage_accounting),
):
    result = await accounting.reconcile(owner.org_id)
    return json_no_store(ReconcileResponse(**result.as_strings()))


@router.get("/breakdown", response_model=BreakdownResponse, summary="Where the bytes are")
async def storage_breakdown(
    owner: OwnerContext = Depends(get_owner_context),
    accounting: StorageAccounting = Depends(get_storage_accounting),
):
    b = await accounting.breakdown(owner.org_id)
    out = BreakdownResponse(
        limit_bytes=str(b.limit_bytes),
        used_bytes=str(b.used_bytes),
        active_bytes=str(b.active_bytes),
        archived_bytes=str(b.archived_bytes),
        counter_used_bytes=str(b.counter_used_bytes),
        top_galleries=[
            GalleryBucketOut(
                gallery_id=g.gallery_id,
                gallery_name=g.gallery_name,
                video_count=g.video_count,
                bytes=str(g.bytes),
                active_bytes=str(g.active_bytes),
                archived_bytes=str(g.archived_bytes),
            )
            for g in b.top_galleries
        ],
        largest_videos=[
            LargestVideoOut(
                id=v.id,
                title=v.title,
                size_bytes=str(v.size_bytes),
                archived_at=v.archived_at,
                created_at=v.created_at,
                gallery_id=v.gallery_id,
                gallery_name=v.gallery_name,
            )
            for v in b.largest_videos
        ],
    )
    return json_no_store(out)
