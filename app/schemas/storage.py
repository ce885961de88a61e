from __future__ import annotations

"""Storage accounting schemas.

Byte counts travel as Python ints internally and as decimal strings on the
wire; they can exceed what a JSON number (IEEE double) represents exactly.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class ReconcileResult:
    before_bytes: int
    used_bytes: int

    @property
    def delta_bytes(self) -> int:
        return self.used_bytes - self.before_bytes

    def as_strings(self) -> dict:
        return {
            "before_bytes": str(self.before_bytes),
            "used_bytes": str(self.used_bytes),
            "delta_bytes": str(self.delta_bytes),
        }


class ReconcileResponse(BaseModel):
    ok: bool = True
    before_bytes: str
    used_bytes: str
    delta_bytes: str


class UsageResponse(BaseModel):
    ok: bool = True
    used_bytes: str
    limit_bytes: str


class GalleryBucketOut(BaseModel):
    gallery_id: str
    gallery_name: str
    video_count: int
    bytes: str
    active_bytes: str
    archived_bytes: str


class LargestVideoOut(BaseModel):
    id: str
    title: str
    size_bytes: str
    archived_at: Optional[str] = None
    created_at: Optional[str] = None
    gallery_id: Optional[str] = None
    gallery_name: Optional[str] = None


class BreakdownResponse(BaseModel):
    ok: bool = True
    limit_bytes: str
    used_bytes: str
    active_bytes: str
    archived_bytes: str
    counter_used_bytes: str
    top_galleries: List[GalleryBucketOut]
    largest_videos: List[LargestVideoOut]
