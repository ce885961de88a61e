from __future__ import annotations

"""Per-org storage figures.

The authoritative figure is the sum of `original_size` over live videos that
have a stored original. `orgs.storage_used_bytes` is a cache of it.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select

from app.db.models import Gallery, GalleryVideo, Org, Video
from app.db.session import async_session_maker
from app.repositories.base import MemoryDatabase, resolve_repository
from app.repositories.records import GalleryMembership, VideoRecord
from app.repositories.videos import _to_record as _video_record


class StorageRepositoryProtocol:
    async def get_cached_usage(self, org_id: str) -> Optional[int]:
        """Cached counter, or None when the org does not exist."""
        raise NotImplementedError

    async def compute_used_bytes(self, org_id: str) -> int:
        raise NotImplementedError

    async def reconcile_usage(self, org_id: str) -> Optional[Tuple[int, int]]:
        """Overwrite the cache with the computed sum; returns (before, used)."""
        raise NotImplementedError

    async def list_stored_videos(self, org_id: str) -> List[VideoRecord]:
        """Live, storage-backed videos of the org."""
        raise NotImplementedError

    async def list_gallery_memberships(self, org_id: str) -> List[GalleryMembership]:
        raise NotImplementedError

    async def list_org_ids(self) -> List[str]:
        raise NotImplementedError


class MemoryStorageRepository(StorageRepositoryProtocol):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def _stored(self, org_id: str) -> List[VideoRecord]:
        return [
            v for v in self._db.videos.values()
            if v.org_id == org_id and v.is_live and v.is_storage_backed
        ]

    async def get_cached_usage(self, org_id: str) -> Optional[int]:
        with self._db.lock:
            org = self._db.orgs.get(org_id)
            return org.storage_used_bytes if org else None

    async def compute_used_bytes(self, org_id: str) -> int:
        with self._db.lock:
            return sum(int(v.original_size or 0) for v in self._stored(org_id))

    async def reconcile_usage(self, org_id: str) -> Optional[Tuple[int, int]]:
        with self._db.lock:
            org = self._db.orgs.get(org_id)
            if org is None:
                return None
            before = org.storage_used_bytes
            used = sum(int(v.original_size or 0) for v in self._stored(org_id))
            org.storage_used_bytes = used
            return before, used

    async def list_stored_videos(self, org_id: str) -> List[VideoRecord]:
        with self._db.lock:
            return self._stored(org_id)

    async def list_gallery_memberships(self, org_id: str) -> List[GalleryMembership]:
        with self._db.lock:
            return [
                GalleryMembership(gallery_id=g.id, gallery_title=g.title, video_id=vid)
                for g in self._db.galleries.values()
                if g.org_id == org_id
                for vid in g.video_ids
            ]

    async def list_org_ids(self) -> List[str]:
        with self._db.lock:
            return sorted(self._db.orgs)


class SQLStorageRepository(StorageRepositoryProtocol):
    def __init__(self, session_factory=async_session_maker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _sum_stmt(org_id: str):
        return select(func.coalesce(func.sum(Video.original_size), 0)).where(
            Video.org_id == org_id,
            Video.deleted_at.is_(None),
            Video.original_key.is_not(None),
            Video.original_size.is_not(None),
        )

    async def get_cached_usage(self, org_id: str) -> Optional[int]:
        async with self._session_factory() as session:
            value = (
                await session.execute(select(Org.storage_used_bytes).where(Org.id == org_id))
            ).scalar_one_or_none()
            return int(value) if value is not None else None

    async def compute_used_bytes(self, org_id: str) -> int:
        async with self._session_factory() as session:
            return int((await session.execute(self._sum_stmt(org_id))).scalar_one())

    async def reconcile_usage(self, org_id: str) -> Optional[Tuple[int, int]]:
        async with self._session_factory() as session:
            async with session.begin():
                org = (
                    await session.execute(select(Org).where(Org.id == org_id).with_for_update())
                ).scalar_one_or_none()
                if org is None:
                    return None
                before = int(org.storage_used_bytes or 0)
                used = int((await session.execute(self._sum_stmt(org_id))).scalar_one())
                org.storage_used_bytes = used
                return before, used

    async def list_stored_videos(self, org_id: str) -> List[VideoRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Video).where(
                        Video.org_id == org_id,
                        Video.deleted_at.is_(None),
                        Video.original_key.is_not(None),
                        Video.original_size.is_not(None),
                    )
                )
            ).scalars().all()
            return [_video_record(r) for r in rows]

    async def list_gallery_memberships(self, org_id: str) -> List[GalleryMembership]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Gallery.id, Gallery.title, GalleryVideo.video_id)
                    .join(GalleryVideo, GalleryVideo.gallery_id == Gallery.id)
                    .where(Gallery.org_id == org_id)
                )
            ).all()
            return [GalleryMembership(gallery_id=g, gallery_title=t or "", video_id=v) for g, t, v in rows]

    async def list_org_ids(self) -> List[str]:
        async with self._session_factory() as session:
            return list((await session.execute(select(Org.id).order_by(Org.id))).scalars().all())


def get_storage_repository() -> StorageRepositoryProtocol:
    return resolve_repository(
        "STORAGE_REPOSITORY_IMPL",
        memory=MemoryStorageRepository,
        sql=SQLStorageRepository,
    )
