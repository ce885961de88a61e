# app/api/v1/routers/galleries.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🗂️ ReelShare · Owner Galleries (version stacks)                          ║
# ║                                                                          ║
# ║ Endpoints:                                                               ║
# ║  - POST /owner/galleries/update-stacks  → persist a full stack map       ║
# ║  - POST /owner/galleries/stack-versions → stack from an explicit order   ║
# ║  - POST /owner/galleries/unstack        → dissolve one stack             ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Rules                                                                    ║
# ║  - Every id must belong to the gallery; anything else is a 400.          ║
# ║  - What is stored is always sanitized and normalized to the gallery.     ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from fastapi import APIRouter, Depends

from app.api.http_utils import json_no_store
from app.core.exceptions import NotFound, ValidationFailed
from app.core.security import OwnerContext, get_owner_context
from app.repositories.galleries import GalleryRepositoryProtocol, get_gallery_repository
from app.repositories.records import GalleryRecord
from app.repositories.videos import VideoRepositoryProtocol, get_video_repository
from app.schemas.galleries import (
    GalleryStacksResponse,
    StackVersionsInput,
    UnstackInput,
    UpdateStacksInput,
)
from app.services.stacks import (
    StackMap,
    normalize_stacks,
    parse_stacks_json,
    sanitize_stacks,
    stacks_from_order,
    unstack,
    visible_video_ids,
)

router = APIRouter(prefix="/owner/galleries", tags=["Owner Galleries"])

log = logging.getLogger(__name__)


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _clean_list(values: Optional[Iterable[Any]]) -> List[str]:
    return [v for v in (_clean(x) for x in (values or ())) if v]


async def _load_gallery(
    galleries: GalleryRepositoryProtocol, owner: OwnerContext, gallery_id: str
) -> GalleryRecord:
    gid = _clean(gallery_id)
    if not gid:
        raise ValidationFailed("gallery_id is required")
    gallery = await galleries.get(gid, org_id=owner.org_id)
    if gallery is None:
        raise NotFound("Gallery not found")
    return gallery


def _require_members(ids: Iterable[str], members: set, what: str) -> None:
    for vid in ids:
        if vid not in members:
            raise ValidationFailed(f"{what} contains a video not in this gallery: {vid}")


def _validate_stack_map(raw: Mapping, members: set) -> None:
    for raw_parent, children in raw.items():
        parent_id = _clean(raw_parent)
        if not parent_id:
            continue
        if parent_id not in members:
            raise ValidationFailed(f"stacks contains a parent not in this gallery: {parent_id}")
        if not isinstance(children, list):
            raise ValidationFailed(f"stacks[{parent_id}] must be an array")
        _require_members([c for c in _clean_list(children)], members, f"stacks[{parent_id}]")


async def _persist(
    galleries: GalleryRepositoryProtocol,
    owner: OwnerContext,
    gallery: GalleryRecord,
    stacks: StackMap,
    ordered_ids: Optional[List[str]] = None,
) -> GalleryRecord:
    clean = normalize_stacks(stacks, gallery.video_ids)
    updated = await galleries.update_stacks(
        gallery.id,
        org_id=owner.org_id,
        stacks_json=json.dumps(clean),
        ordered_ids=ordered_ids or None,
    )
    if updated is None:
        raise NotFound("Gallery not found")
    log.info("Gallery stacks saved org=%s gallery=%s stacks=%d", owner.org_id, gallery.id, len(clean))
    return updated


def _response(gallery: GalleryRecord, **extra) -> GalleryStacksResponse:
    stacks = parse_stacks_json(gallery.stacks_json)
    return GalleryStacksResponse(
        gallery_id=gallery.id,
        stacks=stacks,
        visible_ids=visible_video_ids(gallery.video_ids, stacks),
        **extra,
    )


@router.post("/update-stacks", response_model=GalleryStacksResponse, summary="Replace a gallery's stacks")
async def update_stacks(
    body: UpdateStacksInput,
    owner: OwnerContext = Depends(get_owner_context),
    galleries: GalleryRepositoryProtocol = Depends(get_gallery_repository),
):
    raw = {} if body.stacks is None else body.stacks
    if not isinstance(raw, Mapping):
        raise ValidationFailed("stacks must be an object")
    gallery = await _load_gallery(galleries, owner, body.gallery_id)

    members = set(gallery.video_ids)
    ordered = _clean_list(body.ordered_ids)
    _require_members(ordered, members, "ordered_ids")
    _validate_stack_map(raw, members)

    updated = await _persist(galleries, owner, gallery, sanitize_stacks(raw), ordered)
    return json_no_store(_response(updated))


@router.post("/stack-versions", response_model=GalleryStacksResponse, summary="Stack videos as versions")
async def stack_versions(
    body: StackVersionsInput,
    owner: OwnerContext = Depends(get_owner_context),
    galleries: GalleryRepositoryProtocol = Depends(get_gallery_repository),
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
):
    """`ordered_ids[0]` becomes the parent; the last id is the newest version."""
    gallery = await _load_gallery(galleries, owner, body.gallery_id)
    ordered = _clean_list(body.ordered_ids)
    _require_members(ordered, set(gallery.video_ids), "ordered_ids")

    rows = await videos.list_by_ids(ordered, org_id=owner.org_id)
    statuses = {v.id: v.status for v in rows}
    result = stacks_from_order(ordered, parse_stacks_json(gallery.stacks_json), statuses)
    if result is None:
        raise ValidationFailed("Pick at least two ready videos to stack")

    stacks, parent_id, stack_ids = result
    updated = await _persist(galleries, owner, gallery, stacks)
    return json_no_store(_response(updated, parent_id=parent_id, stack_ids=stack_ids))


@router.post("/unstack", response_model=GalleryStacksResponse, summary="Dissolve a version stack")
async def unstack_versions(
    body: UnstackInput,
    owner: OwnerContext = Depends(get_owner_context),
    galleries: GalleryRepositoryProtocol = Depends(get_gallery_repository),
):
    gallery = await _load_gallery(galleries, owner, body.gallery_id)
    result = unstack(body.parent_id, parse_stacks_json(gallery.stacks_json))
    if result is None:
        raise ValidationFailed("Not a version stack")

    stacks, released = result
    updated = await _persist(galleries, owner, gallery, stacks)
    return json_no_store(_response(updated, parent_id=_clean(body.parent_id), stack_ids=released))
