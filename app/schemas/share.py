from __future__ import annotations

"""Share-link schemas: the validated grant, cached gallery payload, request bodies."""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, constr

from app.schemas.enums import ShareView


class SharePermissions(BaseModel):
    model_config = ConfigDict(frozen=True)

    view: ShareView = ShareView.REVIEW_DOWNLOAD
    allow_comments: bool = False
    allow_download: bool = False


class AccessGrant(BaseModel):
    """Validated, immutable result of a share-token check.

    Authorizes exactly `allowed_video_ids`; callers still re-check membership
    before returning any per-video content.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    org_id: str
    allowed_video_ids: Tuple[str, ...]
    permissions: SharePermissions
    expires_at: Optional[datetime] = None
    gallery_id: Optional[str] = None
    title: Optional[str] = None
    # Legacy single-video links keep their FK; comments on them are scoped by it.
    video_id: Optional[str] = None
    # Already normalized against `allowed_video_ids`.
    stacks: Dict[str, List[str]] = Field(default_factory=dict)

    def allows(self, video_id: str) -> bool:
        return str(video_id or "").strip() in self.allowed_video_ids


class ShareGalleryVideo(BaseModel):
    id: str
    name: str
    description: str = ""
    created_at: str
    thumbnail_url: Optional[str] = None


class SharePayload(BaseModel):
    """Precomputed gallery view cached in the ephemeral share store."""

    share_id: str
    title: str
    permissions: SharePermissions
    allowed_video_ids: List[str]
    stacks: Dict[str, List[str]]
    videos: List[ShareGalleryVideo] = Field(default_factory=list)


class StackNavigation(BaseModel):
    requested_id: str
    latest_id: str
    next_id: Optional[str] = None
    stack_ids: List[str]
    is_latest: bool


# ─────────────────────────────────────────────────────────────────────────────
# Request / response bodies
# ─────────────────────────────────────────────────────────────────────────────

class TokenInput(BaseModel):
    token: Optional[str] = None


class CreateShareInput(BaseModel):
    video_id: constr(strip_whitespace=True, min_length=1, max_length=128)
    allow_comments: bool = True
    allow_download: bool = False
    expires_in_days: Optional[float] = Field(None, gt=0, le=3650)
    contact_id: Optional[str] = None
    conversation_id: Optional[str] = None


class CreateGalleryShareInput(BaseModel):
    allowed_video_ids: List[str] = Field(default_factory=list)
    gallery_id: Optional[str] = None
    title: Optional[str] = None
    stacks: Optional[dict] = None
    view: ShareView = ShareView.REVIEW_DOWNLOAD
    allow_comments: bool = True
    allow_download: bool = False
    expires_in_days: Optional[float] = Field(None, gt=0, le=3650)
    contact_id: Optional[str] = None
    conversation_id: Optional[str] = None


class CreateShareResponse(BaseModel):
    ok: bool = True
    token: str
    url: str


class GrantResponse(BaseModel):
    ok: bool = True
    token: str
    org_id: str
    video_id: Optional[str] = None
    gallery_id: Optional[str] = None
    title: Optional[str] = None
    view: ShareView
    allow_comments: bool
    allow_download: bool
    expires_at: Optional[datetime] = None
    allowed_video_ids: List[str]
    stacks: Dict[str, List[str]] = Field(default_factory=dict)


__all__ = [
    "SharePermissions",
    "AccessGrant",
    "ShareGalleryVideo",
    "SharePayload",
    "StackNavigation",
    "TokenInput",
    "CreateShareInput",
    "CreateGalleryShareInput",
    "CreateShareResponse",
    "GrantResponse",
]
