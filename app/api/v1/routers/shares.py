# app/api/v1/routers/shares.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🔗 ReelShare · Share Links                                               ║
# ║                                                                          ║
# ║ Endpoints:                                                               ║
# ║  - POST /shares/validate              → grant fields (token in body)     ║
# ║  - POST /shares/resolve               → grant + stored link JSON         ║
# ║  - POST /shares/create                → single-video link (owner)        ║
# ║  - POST /shares/create-gallery        → gallery link (owner)             ║
# ║  - GET  /shares/payload               → cached gallery payload           ║
# ║  - GET  /shares/videos/{id}/stack     → latest / next version            ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Security                                                                 ║
# ║  - Token failures are 400 / 404 / 410 with a stable `code`.              ║
# ║  - Unknown and empty-scope tokens are indistinguishable.                 ║
# ║  - Per-video answers re-check the video against the grant (403).         ║
# ║  - Strict `Cache-Control: no-store` on all responses.                    ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Request, status

from app.api.http_utils import json_no_store
from app.core.config import settings
from app.core.dependencies import (
    get_access_grant,
    get_share_authority,
    get_share_issuer,
    get_share_store,
)
from app.core.security import OwnerContext, get_owner_context
from app.repositories.videos import VideoRepositoryProtocol, get_video_repository
from app.schemas.share import (
    AccessGrant,
    CreateGalleryShareInput,
    CreateShareInput,
    CreateShareResponse,
    GrantResponse,
    StackNavigation,
    TokenInput,
)
from app.services.share_authority import (
    ShareAuthority,
    ShareLinkIssuer,
    extract_share_token,
    require_video_in_grant,
)
from app.services.share_payload import load_share_payload
from app.services.share_store import EphemeralShareStore
from app.services.stacks import (
    build_child_to_parent,
    get_next_id_in_stack,
    get_stack_ids_for_video,
    latest_id_for_card,
)

router = APIRouter(
    prefix="/shares",
    tags=["Shares"],
    responses={
        400: {"description": "Missing token / invalid input"},
        403: {"description": "Forbidden"},
        404: {"description": "Invalid token"},
        410: {"description": "Link expired"},
    },
)

log = logging.getLogger(__name__)


def _grant_response(grant: AccessGrant) -> GrantResponse:
    return GrantResponse(
        token=grant.token,
        org_id=grant.org_id,
        video_id=grant.video_id,
        gallery_id=grant.gallery_id,
        title=grant.title,
        view=grant.permissions.view,
        allow_comments=grant.permissions.allow_comments,
        allow_download=grant.permissions.allow_download,
        expires_at=grant.expires_at,
        allowed_video_ids=list(grant.allowed_video_ids),
        stacks=grant.stacks,
    )


def _share_url(path: str) -> str:
    return f"{settings.public_base_url_str}{path}"


# ─────────────────────────────────────────────────────────────────────────────
# 🔎 Validate / resolve
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/validate", response_model=GrantResponse, summary="Validate a share token")
async def validate_share(
    request: Request,
    body: TokenInput,
    authority: ShareAuthority = Depends(get_share_authority),
):
    grant = await authority.validate(body.token or extract_share_token(request))
    return json_no_store(_grant_response(grant))


@router.post("/resolve", summary="Validate a share token and return the stored link")
async def resolve_share(
    request: Request,
    body: TokenInput,
    authority: ShareAuthority = Depends(get_share_authority),
):
    grant, record = await authority.resolve(body.token or extract_share_token(request))
    payload = _grant_response(grant).model_dump(mode="json")
    payload["allowed_video_ids_json"] = record.allowed_video_ids_json
    payload["stacks_json"] = record.stacks_json
    return json_no_store(payload)


# ─────────────────────────────────────────────────────────────────────────────
# ➕ Create (owner)
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/create", response_model=CreateShareResponse, status_code=status.HTTP_201_CREATED)
async def create_share(
    body: CreateShareInput,
    owner: OwnerContext = Depends(get_owner_context),
    issuer: ShareLinkIssuer = Depends(get_share_issuer),
):
    created = await issuer.create_video_share(
        org_id=owner.org_id,
        video_id=body.video_id,
        allow_comments=body.allow_comments,
        allow_download=body.allow_download,
        expires_in_days=body.expires_in_days,
        contact_id=body.contact_id,
        conversation_id=body.conversation_id,
    )
    out = CreateShareResponse(
        token=created.token,
        url=_share_url(f"/r/{created.token}/videos/{created.video_id}"),
    )
    return json_no_store(out, status_code=status.HTTP_201_CREATED)


@router.post("/create-gallery", response_model=CreateShareResponse, status_code=status.HTTP_201_CREATED)
async def create_gallery_share(
    body: CreateGalleryShareInput,
    owner: OwnerContext = Depends(get_owner_context),
    issuer: ShareLinkIssuer = Depends(get_share_issuer),
):
    created = await issuer.create_gallery_share(
        org_id=owner.org_id,
        allowed_video_ids=body.allowed_video_ids,
        gallery_id=body.gallery_id,
        title=body.title,
        stacks=body.stacks,
        view=body.view,
        allow_comments=body.allow_comments,
        allow_download=body.allow_download,
        expires_in_days=body.expires_in_days,
        contact_id=body.contact_id,
        conversation_id=body.conversation_id,
    )
    out = CreateShareResponse(token=created.token, url=_share_url(f"/r/{created.token}"))
    return json_no_store(out, status_code=status.HTTP_201_CREATED)


# ─────────────────────────────────────────────────────────────────────────────
# 🖼️ Recipient views
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/payload", summary="Gallery payload for the carried share token")
async def share_payload(
    request: Request,
    authority: ShareAuthority = Depends(get_share_authority),
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
    store: EphemeralShareStore = Depends(get_share_store),
):
    payload = await load_share_payload(
        extract_share_token(request),
        authority=authority,
        videos=videos,
        store=store,
    )
    return json_no_store(payload)


@router.get("/videos/{video_id}/stack", response_model=StackNavigation)
async def share_video_stack(
    video_id: str = Path(..., min_length=1, max_length=128),
    grant: AccessGrant = Depends(get_access_grant),
):
    """Where a shared video sits in its version stack.

    A stale link to an older version still resolves; the client uses
    `latest_id` to offer the newest cut.
    """
    vid = require_video_in_grant(grant, video_id)
    stacks = grant.stacks
    c2p = build_child_to_parent(stacks)
    latest = latest_id_for_card(vid, stacks, c2p)
    nav = StackNavigation(
        requested_id=vid,
        latest_id=latest,
        next_id=get_next_id_in_stack(vid, stacks),
        stack_ids=get_stack_ids_for_video(vid, stacks, c2p),
        is_latest=latest == vid,
    )
    return json_no_store(nav)
