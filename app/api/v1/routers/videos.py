# app/api/v1/routers/videos.py
# ╔══════════════════════════════════════════════════════════════════════════╗
# ║ 🎞️ ReelShare · Videos                                                    ║
# ║                                                                          ║
# ║ Endpoints:                                                               ║
# ║  - POST /owner/videos/upload/init     → reserve quota + signed PUT       ║
# ║  - POST /owner/videos/{id}/transcode  → submit original to transcoder    ║
# ║  - POST /owner/videos/{id}/archive    → mark archived                    ║
# ║  - POST /owner/videos/{id}/unarchive  → clear archived                   ║
# ║  - POST /owner/videos/{id}/delete     → remove media + rows atomically   ║
# ║  - GET  /videos/{id}/download         → 302 to a signed URL              ║
# ╠──────────────────────────────────────────────────────────────────────────╣
# ║ Quota                                                                    ║
# ║  - Upload init increments the org counter only while it stays within     ║
# ║    STORAGE_LIMIT_BYTES; otherwise 402 with the figures as strings.       ║
# ║ Download auth                                                            ║
# ║  - An owner session downloads any live video of its org.                 ║
# ║  - Otherwise a share token must cover the video and allow downloads.     ║
# ║  - Share-side refusals are a generic 403.                                ║
# ╚══════════════════════════════════════════════════════════════════════════╝

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path
from fastapi.responses import RedirectResponse

from app.api.http_utils import json_no_store, sanitize_id
from app.core.dependencies import get_optional_access_grant, get_video_lifecycle
from app.core.security import OwnerContext, get_optional_owner_context, get_owner_context
from app.schemas.share import AccessGrant
from app.schemas.videos import (
    ArchiveResponse,
    TranscodeResponse,
    UploadInitInput,
    UploadInitResponse,
)
from app.services.comment_thread import iso_timestamp
from app.services.video_lifecycle import VideoLifecycle

router = APIRouter(tags=["Videos"])


@router.post(
    "/owner/videos/upload/init",
    response_model=UploadInitResponse,
    summary="Reserve storage and get a signed upload URL",
)
async def init_upload(
    body: UploadInitInput,
    owner: OwnerContext = Depends(get_owner_context),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    ticket = await lifecycle.init_upload(
        org_id=owner.org_id,
        gallery_id=body.gallery_id,
        filename=body.filename,
        size=body.size,
        content_type=body.content_type,
        title=body.title,
        description=body.description,
    )
    out = UploadInitResponse(
        video_id=ticket.video.id,
        original_key=ticket.video.original_key,
        upload_url=ticket.upload_url,
        headers={"content-type": ticket.content_type},
        expires_in=ticket.expires_in,
        reserved_bytes=str(ticket.video.original_size),
        used_bytes=str(ticket.used_bytes),
    )
    return json_no_store(out, status_code=201)


@router.post(
    "/owner/videos/{video_id}/transcode",
    response_model=TranscodeResponse,
    summary="Submit the stored original for transcoding",
)
async def transcode_video(
    video_id: str = Path(..., min_length=1, max_length=128),
    owner: OwnerContext = Depends(get_owner_context),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    video, already = await lifecycle.start_transcode(
        org_id=owner.org_id, video_id=sanitize_id(video_id, field="video_id")
    )
    return json_no_store(
        TranscodeResponse(
            video_id=video.id,
            asset_id=video.transcoder_asset_id,
            playback_id=video.playback_id,
            status=video.status.value,
            already=already,
        )
    )


@router.post("/owner/videos/{video_id}/archive", response_model=ArchiveResponse, summary="Archive a video")
async def archive_video(
    video_id: str = Path(..., min_length=1, max_length=128),
    owner: OwnerContext = Depends(get_owner_context),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    video = await lifecycle.archive(org_id=owner.org_id, video_id=sanitize_id(video_id, field="video_id"))
    return json_no_store(ArchiveResponse(video_id=video.id, archived_at=iso_timestamp(video.archived_at)))


@router.post("/owner/videos/{video_id}/unarchive", response_model=ArchiveResponse, summary="Unarchive a video")
async def unarchive_video(
    video_id: str = Path(..., min_length=1, max_length=128),
    owner: OwnerContext = Depends(get_owner_context),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    video = await lifecycle.unarchive(org_id=owner.org_id, video_id=sanitize_id(video_id, field="video_id"))
    return json_no_store(ArchiveResponse(video_id=video.id))


@router.post("/owner/videos/{video_id}/delete", summary="Delete a video and release its storage")
async def delete_video(
    video_id: str = Path(..., min_length=1, max_length=128),
    owner: OwnerContext = Depends(get_owner_context),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    deleted = await lifecycle.delete(org_id=owner.org_id, video_id=sanitize_id(video_id, field="video_id"))
    return json_no_store({"ok": True, "video_id": deleted.id})


@router.get("/videos/{video_id}/download", summary="Redirect to a signed download URL")
async def download_video(
    video_id: str = Path(..., min_length=1, max_length=128),
    owner: Optional[OwnerContext] = Depends(get_optional_owner_context),
    grant: Optional[AccessGrant] = Depends(get_optional_access_grant),
    lifecycle: VideoLifecycle = Depends(get_video_lifecycle),
):
    url = await lifecycle.download_url(
        sanitize_id(video_id, field="video_id"),
        owner_org_id=owner.org_id if owner else None,
        grant=None if owner else grant,
    )
    resp = RedirectResponse(url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp
