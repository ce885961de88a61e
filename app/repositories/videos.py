from __future__ import annotations

"""Video persistence, including the two multi-table mutations.

- `reserve_upload` increments the org's cached usage only while it stays within
  the quota, inserts the video and appends it to its gallery.
- `delete_cascade` removes gallery memberships, comments and single-video
  share links, soft-deletes the video and releases its bytes.

Each commits together or not at all.
"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select, update

from app.db.models import Comment, Gallery, GalleryVideo, Org, ShareLink, Video
from app.db.session import async_session_maker
from app.repositories.base import MemoryDatabase, resolve_repository
from app.repositories.records import UploadReservation, VideoRecord
from app.schemas.enums import VideoStatus


class VideoRepositoryProtocol:
    async def get(self, video_id: str, *, org_id: Optional[str] = None) -> Optional[VideoRecord]:
        """Live video by id, optionally scoped to an org."""
        raise NotImplementedError

    async def list_by_ids(self, video_ids: Iterable[str], *, org_id: Optional[str] = None) -> List[VideoRecord]:
        """Live videos in the order of `video_ids`; unknown ids are skipped."""
        raise NotImplementedError

    async def find_by_asset_id(self, asset_id: str) -> Optional[VideoRecord]:
        raise NotImplementedError

    async def update_transcoding(
        self,
        video_id: str,
        *,
        status: VideoStatus,
        playback_id: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
    ) -> Optional[VideoRecord]:
        raise NotImplementedError

    async def attach_transcoder_asset(
        self,
        video_id: str,
        *,
        org_id: str,
        asset_id: str,
        playback_id: Optional[str] = None,
    ) -> Optional[VideoRecord]:
        """Record the submitted asset and mark the video PROCESSING."""
        raise NotImplementedError

    async def set_archived(
        self, video_id: str, *, org_id: str, archived_at: Optional[datetime]
    ) -> Optional[VideoRecord]:
        raise NotImplementedError

    async def reserve_upload(
        self, video: VideoRecord, *, gallery_id: str, limit_bytes: int
    ) -> Optional[UploadReservation]:
        """Reserve quota, insert `video` and append it to the gallery, atomically.

        The counter is only incremented while `used + size <= limit`, so two
        concurrent uploads can never overshoot the quota together. Returns
        None when the gallery is not the org's.
        """
        raise NotImplementedError

    async def delete_cascade(self, org_id: str, video_id: str, *, now: datetime) -> Optional[VideoRecord]:
        """Atomically delete a video and its dependents; None when not found."""
        raise NotImplementedError


class MemoryVideoRepository(VideoRepositoryProtocol):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    def _live(self, video_id: str, org_id: Optional[str]) -> Optional[VideoRecord]:
        video = self._db.videos.get(video_id)
        if video is None or not video.is_live:
            return None
        if org_id is not None and video.org_id != org_id:
            return None
        return video

    async def get(self, video_id: str, *, org_id: Optional[str] = None) -> Optional[VideoRecord]:
        with self._db.lock:
            return self._live(video_id, org_id)

    async def list_by_ids(self, video_ids: Iterable[str], *, org_id: Optional[str] = None) -> List[VideoRecord]:
        with self._db.lock:
            found = (self._live(vid, org_id) for vid in video_ids)
            return [v for v in found if v is not None]

    async def find_by_asset_id(self, asset_id: str) -> Optional[VideoRecord]:
        with self._db.lock:
            for video in self._db.videos.values():
                if video.transcoder_asset_id == asset_id and video.is_live:
                    return video
            return None

    async def update_transcoding(self, video_id, *, status, playback_id=None, thumbnail_url=None):
        with self._db.lock:
            video = self._live(video_id, None)
            if video is None:
                return None
            updated = replace(
                video,
                status=status,
                playback_id=playback_id or video.playback_id,
                thumbnail_url=thumbnail_url or video.thumbnail_url,
            )
            self._db.videos[video_id] = updated
            return updated

    async def attach_transcoder_asset(self, video_id, *, org_id, asset_id, playback_id=None):
        with self._db.lock:
            video = self._live(video_id, org_id)
            if video is None:
                return None
            updated = replace(
                video,
                status=VideoStatus.PROCESSING,
                transcoder_asset_id=asset_id,
                playback_id=playback_id or video.playback_id,
            )
            self._db.videos[video_id] = updated
            return updated

    async def set_archived(self, video_id, *, org_id, archived_at):
        with self._db.lock:
            video = self._live(video_id, org_id)
            if video is None:
                return None
            updated = replace(video, archived_at=archived_at)
            self._db.videos[video_id] = updated
            return updated

    async def reserve_upload(self, video, *, gallery_id, limit_bytes):
        db = self._db
        size = int(video.original_size or 0)
        with db.lock:
            gallery = db.galleries.get(gallery_id)
            org = db.orgs.get(video.org_id)
            if gallery is None or gallery.org_id != video.org_id or org is None:
                return None
            if org.storage_used_bytes > limit_bytes - size:
                return UploadReservation(video=None, used_bytes=org.storage_used_bytes)

            org.storage_used_bytes += size
            db.videos[video.id] = video
            db.galleries[gallery_id] = replace(gallery, video_ids=gallery.video_ids + [video.id])
            return UploadReservation(video=video, used_bytes=org.storage_used_bytes)

    async def delete_cascade(self, org_id: str, video_id: str, *, now: datetime) -> Optional[VideoRecord]:
        db = self._db
        with db.lock:
            video = self._live(video_id, org_id)
            if video is None:
                return None
            org = db.orgs.get(org_id)
            if org is None:
                raise LookupError(f"org {org_id} missing for video {video_id}")

            for gallery in db.galleries_containing(video_id):
                gallery.video_ids = [v for v in gallery.video_ids if v != video_id]
            for cid in [c.id for c in db.comments.values() if c.video_id == video_id]:
                del db.comments[cid]
            for sid in [s.id for s in db.share_links.values() if s.video_id == video_id]:
                del db.share_links[sid]

            deleted = replace(video, deleted_at=now, archived_at=None, status=VideoStatus.FAILED)
            db.videos[video_id] = deleted
            size = int(video.original_size or 0)
            if size > 0:
                org.storage_used_bytes = max(0, org.storage_used_bytes - size)
            return deleted


def _to_record(row: Video) -> VideoRecord:
    return VideoRecord(
        id=row.id,
        org_id=row.org_id,
        title=row.title or "",
        description=row.description,
        status=row.status,
        original_key=row.original_key,
        original_size=int(row.original_size) if row.original_size is not None else None,
        transcoder_asset_id=row.transcoder_asset_id,
        playback_id=row.playback_id,
        thumbnail_url=row.thumbnail_url,
        archived_at=row.archived_at,
        deleted_at=row.deleted_at,
        created_at=row.created_at,
    )


class SQLVideoRepository(VideoRepositoryProtocol):
    def __init__(self, session_factory=async_session_maker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _live_query(org_id: Optional[str]):
        stmt = select(Video).where(Video.deleted_at.is_(None))
        if org_id is not None:
            stmt = stmt.where(Video.org_id == org_id)
        return stmt

    async def get(self, video_id: str, *, org_id: Optional[str] = None) -> Optional[VideoRecord]:
        async with self._session_factory() as session:
            row = (
                await session.execute(self._live_query(org_id).where(Video.id == video_id))
            ).scalar_one_or_none()
            return _to_record(row) if row else None

    async def list_by_ids(self, video_ids: Iterable[str], *, org_id: Optional[str] = None) -> List[VideoRecord]:
        ids = list(video_ids)
        if not ids:
            return []
        async with self._session_factory() as session:
            rows = (await session.execute(self._live_query(org_id).where(Video.id.in_(ids)))).scalars().all()
        by_id = {row.id: _to_record(row) for row in rows}
        return [by_id[vid] for vid in ids if vid in by_id]

    async def find_by_asset_id(self, asset_id: str) -> Optional[VideoRecord]:
        async with self._session_factory() as session:
            row = (
                await session.execute(self._live_query(None).where(Video.transcoder_asset_id == asset_id))
            ).scalars().first()
            return _to_record(row) if row else None

    async def update_transcoding(self, video_id, *, status, playback_id=None, thumbnail_url=None):
        async with self._session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(self._live_query(None).where(Video.id == video_id).with_for_update())
                ).scalar_one_or_none()
                if row is None:
                    return None
                row.status = status
                if playback_id:
                    row.playback_id = playback_id
                if thumbnail_url:
                    row.thumbnail_url = thumbnail_url
                await session.flush()
                return _to_record(row)

    async def attach_transcoder_asset(self, video_id, *, org_id, asset_id, playback_id=None):
        async with self._session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(self._live_query(org_id).where(Video.id == video_id).with_for_update())
                ).scalar_one_or_none()
                if row is None:
                    return None
                row.status = VideoStatus.PROCESSING
                row.transcoder_asset_id = asset_id
                if playback_id:
                    row.playback_id = playback_id
                await session.flush()
                return _to_record(row)

    async def set_archived(self, video_id, *, org_id, archived_at):
        async with self._session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(self._live_query(org_id).where(Video.id == video_id).with_for_update())
                ).scalar_one_or_none()
                if row is None:
                    return None
                row.archived_at = archived_at
                await session.flush()
                return _to_record(row)

    async def reserve_upload(self, video, *, gallery_id, limit_bytes):
        size = int(video.original_size or 0)
        async with self._session_factory() as session:
            async with session.begin():
                gallery_found = (
                    await session.execute(
                        select(Gallery.id).where(Gallery.id == gallery_id, Gallery.org_id == video.org_id)
                    )
                ).scalar_one_or_none()
                if gallery_found is None:
                    return None

                # Conditional increment: the row lock taken by UPDATE serializes racing uploads.
                reserved = await session.execute(
                    update(Org)
                    .where(Org.id == video.org_id, Org.storage_used_bytes <= limit_bytes - size)
                    .values(storage_used_bytes=Org.storage_used_bytes + size)
                    .returning(Org.storage_used_bytes)
                )
                used_after = reserved.scalar_one_or_none()
                if used_after is None:
                    used = (
                        await session.execute(select(Org.storage_used_bytes).where(Org.id == video.org_id))
                    ).scalar_one_or_none()
                    if used is None:
                        return None
                    return UploadReservation(video=None, used_bytes=int(used))

                sort_order = (
                    await session.execute(
                        select(func.count()).select_from(GalleryVideo).where(GalleryVideo.gallery_id == gallery_id)
                    )
                ).scalar_one()
                row = Video(
                    id=video.id,
                    org_id=video.org_id,
                    title=video.title,
                    description=video.description,
                    status=video.status,
                    original_key=video.original_key,
                    original_size=size,
                    transcoder_asset_id=None,
                    playback_id=None,
                    thumbnail_url=None,
                    archived_at=None,
                    deleted_at=None,
                    created_at=video.created_at,
                )
                session.add(row)
                session.add(GalleryVideo(gallery_id=gallery_id, video_id=video.id, sort_order=int(sort_order)))
                await session.flush()
                return UploadReservation(video=_to_record(row), used_bytes=int(used_after))

    async def delete_cascade(self, org_id: str, video_id: str, *, now: datetime) -> Optional[VideoRecord]:
        async with self._session_factory() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        self._live_query(org_id).where(Video.id == video_id).with_for_update()
                    )
                ).scalar_one_or_none()
                if row is None:
                    return None

                await session.execute(delete(GalleryVideo).where(GalleryVideo.video_id == video_id))
                await session.execute(delete(Comment).where(Comment.video_id == video_id))
                await session.execute(delete(ShareLink).where(ShareLink.video_id == video_id))

                row.deleted_at = now
                row.archived_at = None
                row.status = VideoStatus.FAILED

                size = int(row.original_size or 0)
                if size > 0:
                    await session.execute(
                        update(Org)
                        .where(Org.id == org_id)
                        .values(storage_used_bytes=func.greatest(Org.storage_used_bytes - size, 0))
                    )
                await session.flush()
                return _to_record(row)


def get_video_repository() -> VideoRepositoryProtocol:
    return resolve_repository(
        "VIDEO_REPOSITORY_IMPL",
        memory=MemoryVideoRepository,
        sql=SQLVideoRepository,
    )
