from __future__ import annotations

"""Owner video schemas (upload, transcode, archive)."""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class UploadInitInput(BaseModel):
    gallery_id: str = ""
    filename: str = ""
    size: int = Field(..., gt=0, description="Declared size of the original in bytes.")
    content_type: Optional[str] = None
    title: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = None


class UploadInitResponse(BaseModel):
    ok: bool = True
    video_id: str
    original_key: str
    upload_url: str
    headers: Dict[str, str]
    expires_in: int
    reserved_bytes: str
    used_bytes: str


class TranscodeResponse(BaseModel):
    ok: bool = True
    video_id: str
    asset_id: Optional[str] = None
    playback_id: Optional[str] = None
    status: str
    already: bool = False


class ArchiveResponse(BaseModel):
    ok: bool = True
    video_id: str
    archived_at: Optional[str] = None


__all__ = [
    "UploadInitInput",
    "UploadInitResponse",
    "TranscodeResponse",
    "ArchiveResponse",
]
