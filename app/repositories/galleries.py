from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from sqlalchemy import select

from app.db.models import Gallery
from app.db.session import async_session_maker
from app.repositories.base import MemoryDatabase, resolve_repository
from app.repositories.records import GalleryRecord


def _reordered(current: List[str], ordered_ids: Optional[Sequence[str]]) -> List[str]:
    """Members listed in `ordered_ids` first (in that order), the rest after."""
    if not ordered_ids:
        return list(current)
    members = set(current)
    head = [vid for vid in dict.fromkeys(ordered_ids) if vid in members]
    placed = set(head)
    return head + [vid for vid in current if vid not in placed]


class GalleryRepositoryProtocol:
    async def get(self, gallery_id: str, *, org_id: str) -> Optional[GalleryRecord]:
        raise NotImplementedError

    async def update_stacks(
        self,
        gallery_id: str,
        *,
        org_id: str,
        stacks_json: str,
        ordered_ids: Optional[Sequence[str]] = None,
    ) -> Optional[GalleryRecord]:
        """Persist stack JSON and, when given, the grid order."""
        raise NotImplementedError


class MemoryGalleryRepository(GalleryRepositoryProtocol):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def get(self, gallery_id: str, *, org_id: str) -> Optional[GalleryRecord]:
        with self._db.lock:
            gallery = self._db.galleries.get(gallery_id)
            return gallery if gallery and gallery.org_id == org_id else None

    async def update_stacks(self, gallery_id, *, org_id, stacks_json, ordered_ids=None):
        with self._db.lock:
            gallery = self._db.galleries.get(gallery_id)
            if gallery is None or gallery.org_id != org_id:
                return None
            updated = replace(
                gallery,
                stacks_json=stacks_json,
                video_ids=_reordered(gallery.video_ids, ordered_ids),
            )
            self._db.galleries[gallery_id] = updated
            return updated


def _to_record(row: Gallery) -> GalleryRecord:
    return GalleryRecord(
        id=row.id,
        org_id=row.org_id,
        title=row.title or "",
        stacks_json=row.stacks_json,
        video_ids=[item.video_id for item in sorted(row.items, key=lambda i: i.sort_order)],
        archived_at=row.archived_at,
    )


class SQLGalleryRepository(GalleryRepositoryProtocol):
    def __init__(self, session_factory=async_session_maker) -> None:
        self._session_factory = session_factory

    async def get(self, gallery_id: str, *, org_id: str) -> Optional[GalleryRecord]:
        async with self._session_factory() as session:
            row = (
                await session.execute(
                    select(Gallery).where(Gallery.id == gallery_id, Gallery.org_id == org_id)
                )
            ).scalar_one_or_none()
            return _to_record(row) if row else None

    async def update_stacks(self, gallery_id, *, org_id, stacks_json, ordered_ids=None):
        async with self._session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        select(Gallery)
                        .where(Gallery.id == gallery_id, Gallery.org_id == org_id)
                        .with_for_update()
                    )
                ).scalar_one_or_none()
                if row is None:
                    return None
                row.stacks_json = stacks_json
                if ordered_ids:
                    current = [i.video_id for i in sorted(row.items, key=lambda i: i.sort_order)]
                    position = {vid: idx for idx, vid in enumerate(_reordered(current, ordered_ids))}
                    for item in row.items:
                        item.sort_order = position[item.video_id]
                await session.flush()
                return _to_record(row)


def get_gallery_repository() -> GalleryRepositoryProtocol:
    return resolve_repository(
        "GALLERY_REPOSITORY_IMPL",
        memory=MemoryGalleryRepository,
        sql=SQLGalleryRepository,
    )
