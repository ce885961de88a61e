from __future__ import annotations

"""
💾 Storage accounting
=====================

`orgs.storage_used_bytes` is a fast counter shown on every owner page. It is
incremented on upload and decremented on delete, and can drift when either
side fails half-way. The authoritative figure is always recomputable: the
sum of `original_size` over the org's live videos that have a stored
original. `reconcile` overwrites the counter with that sum.

All arithmetic is on Python ints; the HTTP layer renders decimal strings.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import NotFound, StorageAccountingError
from app.repositories.records import VideoRecord
from app.repositories.storage import StorageRepositoryProtocol
from app.schemas.storage import ReconcileResult
from app.services.comment_thread import iso_timestamp

logger = logging.getLogger(__name__)

_TOP_N = 10


@dataclass
class GalleryBucket:
    gallery_id: str
    gallery_name: str
    video_count: int = 0
    bytes: int = 0
    active_bytes: int = 0
    archived_bytes: int = 0


@dataclass
class LargestVideo:
    id: str
    title: str
    size_bytes: int
    archived_at: Optional[str]
    created_at: Optional[str]
    gallery_id: Optional[str]
    gallery_name: Optional[str]


@dataclass
class StorageBreakdown:
    limit_bytes: int
    used_bytes: int
    active_bytes: int
    archived_bytes: int
    counter_used_bytes: int
    top_galleries: List[GalleryBucket] = field(default_factory=list)
    largest_videos: List[LargestVideo] = field(default_factory=list)


class StorageAccounting:
    def __init__(self, repository: StorageRepositoryProtocol, *, limit_bytes: Optional[int] = None) -> None:
        self._repository = repository
        self._limit = int(limit_bytes if limit_bytes is not None else settings.STORAGE_LIMIT_BYTES)

    @property
    def limit_bytes(self) -> int:
        return self._limit

    async def reconcile(self, org_id: str) -> ReconcileResult:
        """Recompute usage and overwrite the cached counter. Idempotent."""
        try:
            figures = await self._repository.reconcile_usage(org_id)
        except Exception as exc:
            logger.exception("Storage reconcile failed org=%s", org_id)
            raise StorageAccountingError() from exc
        if figures is None:
            raise NotFound("Org not found")

        before, used = figures
        result = ReconcileResult(before_bytes=int(before), used_bytes=int(used))
        if result.delta_bytes:
            logger.warning(
                "Storage counter drift corrected org=%s before=%d used=%d delta=%d",
                org_id, result.before_bytes, result.used_bytes, result.delta_bytes,
            )
        else:
            logger.info("Storage counter in sync org=%s used=%d", org_id, result.used_bytes)
        return result

    async def usage(self, org_id: str) -> int:
        """Authoritative used bytes (not the cached counter)."""
        return int(await self._repository.compute_used_bytes(org_id))

    async def breakdown(self, org_id: str) -> StorageBreakdown:
        counter = await self._repository.get_cached_usage(org_id)
        if counter is None:
            raise NotFound("Org not found")
        videos = await self._repository.list_stored_videos(org_id)
        memberships = await self._repository.list_gallery_memberships(org_id)

        galleries_of: Dict[str, List[tuple]] = {}
        for m in memberships:
            galleries_of.setdefault(m.video_id, []).append((m.gallery_id, m.gallery_title))

        used = active = archived = 0
        buckets: "OrderedDict[str, GalleryBucket]" = OrderedDict()
        for video in videos:
            size = int(video.original_size or 0)
            if size <= 0:
                continue
            used += size
            is_archived = video.archived_at is not None
            if is_archived:
                archived += size
            else:
                active += size

            for gallery_id, gallery_title in galleries_of.get(video.id, ()):
                bucket = buckets.get(gallery_id)
                if bucket is None:
                    bucket = buckets[gallery_id] = GalleryBucket(
                        gallery_id=gallery_id,
                        gallery_name=gallery_title or f"Gallery {gallery_id}",
                    )
                bucket.video_count += 1
                bucket.bytes += size
                if is_archived:
                    bucket.archived_bytes += size
                else:
                    bucket.active_bytes += size

        return StorageBreakdown(
            limit_bytes=self._limit,
            used_bytes=used,
            active_bytes=active,
            archived_bytes=archived,
            counter_used_bytes=int(counter),
            top_galleries=sorted(buckets.values(), key=lambda b: b.bytes, reverse=True)[:_TOP_N],
            largest_videos=[self._largest(v, galleries_of) for v in self._top_videos(videos)],
        )

    @staticmethod
    def _top_videos(videos: List[VideoRecord]) -> List[VideoRecord]:
        return sorted(videos, key=lambda v: int(v.original_size or 0), reverse=True)[:_TOP_N]

    @staticmethod
    def _largest(video: VideoRecord, galleries_of: Dict[str, List[tuple]]) -> LargestVideo:
        first = (galleries_of.get(video.id) or [(None, None)])[0]
        return LargestVideo(
            id=video.id,
            title=video.title or "Untitled",
            size_bytes=int(video.original_size or 0),
            archived_at=iso_timestamp(video.archived_at) if video.archived_at else None,
            created_at=iso_timestamp(video.created_at) if video.created_at else None,
            gallery_id=first[0],
            gallery_name=first[1],
        )


__all__ = ["StorageAccounting", "StorageBreakdown", "GalleryBucket", "LargestVideo"]
