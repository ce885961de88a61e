from __future__ import annotations

"""Plain records returned by every repository implementation.

They carry no session state, so services and tests can build and compare them
freely. Byte sizes are Python ints.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from app.schemas.enums import CommentRole, CommentStatus, ShareView, VideoStatus


@dataclass
class OrgRecord:
    id: str
    name: str = ""
    storage_used_bytes: int = 0


@dataclass
class VideoRecord:
    id: str
    org_id: str
    title: str = ""
    description: Optional[str] = None
    status: VideoStatus = VideoStatus.UPLOADING
    original_key: Optional[str] = None
    original_size: Optional[int] = None
    transcoder_asset_id: Optional[str] = None
    playback_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    archived_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        return self.deleted_at is None

    @property
    def is_storage_backed(self) -> bool:
        return bool(self.original_key) and self.original_size is not None


@dataclass
class UploadReservation:
    """Outcome of reserving quota for a new upload.

    `video` is None when the org counter had no room; `used_bytes` is then the
    counter that refused it.
    """

    video: Optional[VideoRecord]
    used_bytes: int

    @property
    def reserved(self) -> bool:
        return self.video is not None


@dataclass
class GalleryRecord:
    id: str
    org_id: str
    title: str = ""
    stacks_json: Optional[str] = None
    video_ids: List[str] = field(default_factory=list)
    archived_at: Optional[datetime] = None


@dataclass
class GalleryMembership:
    gallery_id: str
    gallery_title: str
    video_id: str


@dataclass
class CommentRecord:
    id: str
    org_id: str
    video_id: str
    body: str
    created_at: datetime
    token: Optional[str] = None
    timecode_ms: int = 0
    author: Optional[str] = None
    role: CommentRole = CommentRole.CLIENT
    status: CommentStatus = CommentStatus.OPEN
    parent_id: Optional[str] = None


@dataclass
class ShareLinkRecord:
    id: str
    org_id: str
    token: str
    video_id: Optional[str] = None
    gallery_id: Optional[str] = None
    title: Optional[str] = None
    allowed_video_ids_json: Optional[str] = None
    stacks_json: Optional[str] = None
    view: ShareView = ShareView.REVIEW_DOWNLOAD
    allow_comments: bool = True
    allow_download: bool = False
    expires_at: Optional[datetime] = None
    contact_id: Optional[str] = None
    conversation_id: Optional[str] = None
    created_at: Optional[datetime] = None


__all__ = [
    "OrgRecord",
    "VideoRecord",
    "UploadReservation",
    "GalleryRecord",
    "GalleryMembership",
    "CommentRecord",
    "ShareLinkRecord",
]
