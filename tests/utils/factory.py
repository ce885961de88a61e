# tests/utils/factory.py

import json
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

from app.repositories.base import MemoryDatabase
from app.repositories.records import (
    CommentRecord,
    GalleryRecord,
    OrgRecord,
    ShareLinkRecord,
    VideoRecord,
)
from app.schemas.enums import CommentRole, ShareView, VideoStatus

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def create_org(db: MemoryDatabase, org_id: str = "org-1", *, used: int = 0, name: str = "Studio") -> OrgRecord:
    """✅ Insert an org with a given cached storage counter."""
    org = OrgRecord(id=org_id, name=name, storage_used_bytes=used)
    db.orgs[org_id] = org
    return org


def create_video(
    db: MemoryDatabase,
    video_id: Optional[str] = None,
    *,
    org_id: str = "org-1",
    title: str = "Cut",
    size: Optional[int] = 1000,
    key: Optional[str] = "__default__",
    status: VideoStatus = VideoStatus.READY,
    asset_id: Optional[str] = None,
    playback_id: Optional[str] = None,
    archived: bool = False,
    deleted: bool = False,
    created_at: Optional[datetime] = None,
) -> VideoRecord:
    """✅ Insert a video; by default it is READY and storage-backed."""
    vid = video_id or f"v-{uuid4().hex[:8]}"
    video = VideoRecord(
        id=vid,
        org_id=org_id,
        title=title,
        status=status,
        original_key=f"orgs/{org_id}/{vid}.mp4" if key == "__default__" else key,
        original_size=size,
        transcoder_asset_id=asset_id,
        playback_id=playback_id,
        archived_at=NOW if archived else None,
        deleted_at=NOW if deleted else None,
        created_at=created_at or NOW,
    )
    db.videos[vid] = video
    return video


def create_gallery(
    db: MemoryDatabase,
    gallery_id: str = "g-1",
    *,
    org_id: str = "org-1",
    video_ids: Iterable[str] = (),
    stacks: Optional[Dict[str, List[str]]] = None,
    title: str = "Spring Campaign",
) -> GalleryRecord:
    gallery = GalleryRecord(
        id=gallery_id,
        org_id=org_id,
        title=title,
        stacks_json=json.dumps(stacks) if stacks is not None else None,
        video_ids=list(video_ids),
    )
    db.galleries[gallery_id] = gallery
    return gallery


def create_share(
    db: MemoryDatabase,
    token: str = "tok-gallery",
    *,
    org_id: str = "org-1",
    video_id: Optional[str] = None,
    allowed: Optional[Iterable[str]] = None,
    allowed_json: Optional[str] = None,
    stacks: Optional[Dict[str, List[str]]] = None,
    allow_comments: bool = True,
    allow_download: bool = False,
    view: ShareView = ShareView.REVIEW_DOWNLOAD,
    expires_at: Optional[datetime] = None,
    gallery_id: Optional[str] = None,
    title: Optional[str] = None,
) -> ShareLinkRecord:
    """✅ Insert a share link; `allowed` is stored as a JSON array."""
    if allowed_json is None and allowed is not None:
        allowed_json = json.dumps(list(allowed))
    share = ShareLinkRecord(
        id=f"s-{uuid4().hex[:8]}",
        org_id=org_id,
        token=token,
        video_id=video_id,
        gallery_id=gallery_id,
        title=title,
        allowed_video_ids_json=allowed_json,
        stacks_json=json.dumps(stacks) if stacks is not None else None,
        view=view,
        allow_comments=allow_comments,
        allow_download=allow_download,
        expires_at=expires_at,
        created_at=NOW,
    )
    db.share_links[share.id] = share
    return share


def create_comment(
    db: MemoryDatabase,
    comment_id: Optional[str] = None,
    *,
    video_id: str,
    org_id: str = "org-1",
    token: Optional[str] = "tok-gallery",
    body: str = "Looks good",
    timecode_ms: int = 0,
    parent_id: Optional[str] = None,
    role: CommentRole = CommentRole.CLIENT,
    created_at: Optional[datetime] = None,
) -> CommentRecord:
    comment = CommentRecord(
        id=comment_id or f"c-{uuid4().hex[:8]}",
        org_id=org_id,
        video_id=video_id,
        body=body,
        created_at=created_at or NOW,
        token=token,
        timecode_ms=timecode_ms,
        role=role,
        parent_id=parent_id,
    )
    db.comments[comment.id] = comment
    return comment


def later(seconds: int) -> datetime:
    return NOW + timedelta(seconds=seconds)
