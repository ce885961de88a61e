# app/api/v1/routers/comments.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 💬 ReelShare · Review Comments                                           ║
# ║                                                                          ║
# ║ Client endpoints (share token):                                          ║
# ║  - POST /comments/list                → threaded comments for a video    ║
# ║  - POST /comments/create              → comment or reply                 ║
# ║                                                                          ║
# ║ Owner endpoints (owner session):                                         ║
# ║  - POST /comments/list-owner          → all comments on an org video     ║
# ║  - POST /comments/create-owner        → owner comment or reply           ║
# ║  - POST /comments/toggle-resolved     → OPEN ↔ RESOLVED                  ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Security                                                                 ║
# ║  - Clients only see comments written under their own token.              ║
# ║  - Replies must stay on the parent's token and video.                    ║
# ║  - Owner operations are scoped to the session's org.                     ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from app.api.http_utils import json_no_store
from app.core.dependencies import get_share_authority
from app.core.exceptions import NotAuthorized, NotFound, ValidationFailed
from app.core.logger import mask_token
from app.core.security import OwnerContext, get_owner_context
from app.repositories.comments import CommentRepositoryProtocol, get_comment_repository
from app.repositories.records import CommentRecord
from app.repositories.videos import VideoRepositoryProtocol, get_video_repository
from app.schemas.comments import (
    CommentOut,
    CommentResponse,
    CreateCommentInput,
    ListCommentsInput,
    OwnerCreateCommentInput,
    OwnerListCommentsInput,
    ThreadResponse,
    ToggleResolvedInput,
)
from app.schemas.enums import CommentRole
from app.services.comment_thread import build_thread, iso_timestamp
from app.services.share_authority import (
    ShareAuthority,
    extract_share_token,
    require_video_in_grant,
    utcnow,
)

router = APIRouter(prefix="/comments", tags=["Comments"])

log = logging.getLogger(__name__)


def _comment_out(record: CommentRecord) -> CommentOut:
    return CommentOut(
        id=record.id,
        video_id=record.video_id,
        timecode_ms=record.timecode_ms,
        body=record.body,
        author=record.author,
        role=record.role,
        status=record.status,
        created_at=iso_timestamp(record.created_at),
        parent_id=record.parent_id,
    )


def _require_body(text: str) -> str:
    body = (text or "").strip()
    if not body:
        raise ValidationFailed("Comment body required")
    return body


async def _owner_video_id(videos: VideoRepositoryProtocol, owner: OwnerContext, video_id: str) -> str:
    vid = (video_id or "").strip()
    if not vid:
        raise ValidationFailed("video_id required")
    if await videos.get(vid, org_id=owner.org_id) is None:
        raise NotFound("Video not found")
    return vid


# ─────────────────────────────────────────────────────────────────────────────
# 👤 Client (share token)
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/list", response_model=ThreadResponse, summary="Threaded comments for a shared video")
async def list_comments(
    request: Request,
    body: ListCommentsInput,
    authority: ShareAuthority = Depends(get_share_authority),
    comments: CommentRepositoryProtocol = Depends(get_comment_repository),
):
    grant = await authority.validate(body.token or extract_share_token(request))
    vid = require_video_in_grant(grant, body.video_id)
    rows = await comments.list_for_token(grant.token, vid)
    return json_no_store(ThreadResponse(comments=build_thread(rows)))


@router.post("/create", response_model=CommentResponse, summary="Comment on a shared video")
async def create_comment(
    request: Request,
    body: CreateCommentInput,
    authority: ShareAuthority = Depends(get_share_authority),
    comments: CommentRepositoryProtocol = Depends(get_comment_repository),
):
    grant = await authority.validate(body.token or extract_share_token(request))
    vid = require_video_in_grant(grant, body.video_id)
    if not grant.permissions.allow_comments:
        raise NotAuthorized("Comments disabled for this link")
    text = _require_body(body.body)

    parent_id = (body.parent_id or "").strip() or None
    if parent_id:
        parent = await comments.get(parent_id)
        # Unknown and foreign parents look the same to a share holder.
        if parent is None or parent.token != grant.token or parent.video_id != vid:
            raise NotAuthorized("Invalid parent for this video")

    created = await comments.create(
        CommentRecord(
            id="",
            org_id=grant.org_id,
            video_id=vid,
            body=text,
            created_at=utcnow(),
            token=grant.token,
            timecode_ms=body.timecode_ms,
            author=body.author or None,
            role=CommentRole.CLIENT,
            parent_id=parent_id,
        )
    )
    log.info("Client comment created video=%s token=%s reply=%s", vid, mask_token(grant.token), bool(parent_id))
    return json_no_store(CommentResponse(comment=_comment_out(created)))


# ─────────────────────────────────────────────────────────────────────────────
# 🧑‍💼 Owner
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/list-owner", response_model=ThreadResponse, summary="All comments on an org video")
async def list_owner_comments(
    body: OwnerListCommentsInput,
    owner: OwnerContext = Depends(get_owner_context),
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
    comments: CommentRepositoryProtocol = Depends(get_comment_repository),
):
    vid = await _owner_video_id(videos, owner, body.video_id)
    rows = await comments.list_for_org(owner.org_id, vid)
    return json_no_store(ThreadResponse(comments=build_thread(rows)))


@router.post("/create-owner", response_model=CommentResponse, summary="Owner comment or reply")
async def create_owner_comment(
    body: OwnerCreateCommentInput,
    owner: OwnerContext = Depends(get_owner_context),
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
    comments: CommentRepositoryProtocol = Depends(get_comment_repository),
):
    vid = await _owner_video_id(videos, owner, body.video_id)
    text = _require_body(body.body)

    parent_id = (body.parent_id or "").strip() or None
    token = None
    if parent_id:
        parent = await comments.get(parent_id)
        if parent is None or parent.org_id != owner.org_id:
            raise NotFound("Parent comment not found")
        if parent.video_id != vid:
            raise NotAuthorized("Invalid parent for this video")
        # Replies join the client's thread so the recipient sees them.
        token = parent.token

    created = await comments.create(
        CommentRecord(
            id="",
            org_id=owner.org_id,
            video_id=vid,
            body=text,
            created_at=utcnow(),
            token=token,
            timecode_ms=body.timecode_ms,
            author="Owner",
            role=CommentRole.OWNER,
            parent_id=parent_id,
        )
    )
    log.info("Owner comment created org=%s video=%s reply=%s", owner.org_id, vid, bool(parent_id))
    return json_no_store(CommentResponse(comment=_comment_out(created)))


@router.post("/toggle-resolved", response_model=CommentResponse, summary="Resolve or reopen a comment")
async def toggle_resolved(
    body: ToggleResolvedInput,
    owner: OwnerContext = Depends(get_owner_context),
    comments: CommentRepositoryProtocol = Depends(get_comment_repository),
):
    cid = (body.comment_id or "").strip()
    if not cid:
        raise ValidationFailed("comment_id required")
    existing = await comments.get(cid)
    if existing is None:
        raise NotFound("Comment not found")
    if existing.org_id != owner.org_id:
        raise NotAuthorized()

    updated = await comments.set_status(cid, existing.status.toggled())
    if updated is None:
        raise NotFound("Comment not found")
    return json_no_store(CommentResponse(comment=_comment_out(updated)))
