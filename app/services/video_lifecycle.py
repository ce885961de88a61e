from __future__ import annotations

"""
🗑️ Video lifecycle: upload, transcode, archive, delete, download
=================================================================

An upload starts with a quota reservation: the org counter is incremented by
the declared size before the browser gets its signed PUT, and only when the
counter stays within the limit. Transcoding hands the transcoder a signed GET
of the stored original and records the returned asset id.

Deleting a video touches three systems. External copies go first (the
transcoder rendition, then the stored original); only when both are gone is
the database updated, in one transaction that also releases the bytes from
the org's storage counter. If an external delete fails nothing in the
database changes and the call can be retried.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from app.api.http_utils import sanitize_filename
from app.core.config import settings
from app.core.exceptions import NotAuthorized, NotFound, StorageLimitExceeded, UpstreamFailure, ValidationFailed
from app.db.base_class import new_id
from app.repositories.records import VideoRecord
from app.repositories.videos import VideoRepositoryProtocol
from app.schemas.enums import VideoStatus
from app.schemas.share import AccessGrant
from app.services.share_authority import utcnow
from app.services.transcoding import TranscoderClient, TranscoderError, TranscoderEvent, thumbnail_url
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger(__name__)


def _download_name(video: VideoRecord) -> str:
    ext = ""
    if video.original_key and "." in video.original_key.rsplit("/", 1)[-1]:
        ext = "." + video.original_key.rsplit(".", 1)[-1]
    return sanitize_filename(f"{video.title or video.id}{ext}", fallback=f"{video.id}{ext or '.bin'}")


def original_key_for(org_id: str, video_id: str, filename: str) -> str:
    """Object key of an uploaded original: `orgs/<org>/videos/<id>/original/<name>`."""
    name = re.sub(r"\.{2,}", ".", sanitize_filename(filename, fallback="original.bin")).lstrip(".")
    return f"orgs/{org_id}/videos/{video_id}/original/{name or 'original.bin'}"


@dataclass(frozen=True)
class UploadTicket:
    video: VideoRecord
    upload_url: str
    content_type: str
    expires_in: int
    used_bytes: int


class VideoLifecycle:
    def __init__(
        self,
        videos: VideoRepositoryProtocol,
        *,
        blobs: Optional[S3Client] = None,
        transcoder: Optional[TranscoderClient] = None,
        clock: Callable[[], datetime] = utcnow,
        storage_limit_bytes: Optional[int] = None,
    ) -> None:
        self._videos = videos
        self._blobs = blobs
        self._transcoder = transcoder
        self._clock = clock
        self._limit = int(
            storage_limit_bytes if storage_limit_bytes is not None else settings.STORAGE_LIMIT_BYTES
        )

    async def _owned(self, org_id: str, video_id: str) -> VideoRecord:
        vid = (video_id or "").strip()
        video = await self._videos.get(vid, org_id=org_id) if vid else None
        if video is None:
            raise NotFound("Video not found")
        return video

    # ── upload ────────────────────────────────────────────────
    async def init_upload(
        self,
        *,
        org_id: str,
        gallery_id: str,
        filename: str,
        size: int,
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> UploadTicket:
        """Reserve quota for `size` bytes, create the video and sign its upload.

        The URL is signed before anything is written, so a signing failure
        leaves the counter untouched.
        """
        if not isinstance(size, int) or size <= 0:
            raise ValidationFailed("Missing size")
        if not (gallery_id or "").strip():
            raise ValidationFailed("Missing gallery_id")
        if not (filename or "").strip():
            raise ValidationFailed("Missing filename")
        if self._blobs is None:
            raise UpstreamFailure("Object storage not configured")

        mime = (content_type or "").strip() or "application/octet-stream"
        video_id = new_id()
        key = original_key_for(org_id, video_id, filename)
        ttl = int(settings.UPLOAD_URL_TTL_SECONDS)
        try:
            upload_url = self._blobs.presigned_put(
                key,
                content_type=mime,
                expires_in=ttl,
                metadata={"org_id": org_id, "video_id": video_id},
            )
        except S3StorageError as exc:
            raise UpstreamFailure("Could not sign upload") from exc

        reservation = await self._videos.reserve_upload(
            VideoRecord(
                id=video_id,
                org_id=org_id,
                title=(title or "").strip() or "Untitled",
                description=(description or "").strip() or None,
                status=VideoStatus.UPLOADING,
                original_key=key,
                original_size=size,
                created_at=self._clock(),
            ),
            gallery_id=gallery_id.strip(),
            limit_bytes=self._limit,
        )
        if reservation is None:
            raise NotFound("Gallery not found")
        if not reservation.reserved:
            logger.info(
                "Upload refused org=%s incoming=%d used=%d limit=%d",
                org_id, size, reservation.used_bytes, self._limit,
            )
            raise StorageLimitExceeded(
                used_bytes=reservation.used_bytes, incoming_bytes=size, limit_bytes=self._limit
            )

        logger.info("Upload reserved org=%s video=%s bytes=%d", org_id, video_id, size)
        return UploadTicket(
            video=reservation.video,
            upload_url=upload_url,
            content_type=mime,
            expires_in=ttl,
            used_bytes=reservation.used_bytes,
        )

    # ── transcode ─────────────────────────────────────────────
    async def start_transcode(self, *, org_id: str, video_id: str) -> Tuple[VideoRecord, bool]:
        """Submit the stored original; returns (video, already_submitted)."""
        video = await self._owned(org_id, video_id)
        if not video.original_key:
            raise ValidationFailed("Video has no stored original")
        if video.transcoder_asset_id:
            return video, True
        if self._transcoder is None:
            raise UpstreamFailure("Transcoder not configured")
        if self._blobs is None:
            raise UpstreamFailure("Object storage not configured")

        try:
            source_url = self._blobs.presigned_get(video.original_key, expires_in=settings.UPLOAD_URL_TTL_SECONDS)
            asset = await self._transcoder.create_asset(source_url)
        except (TranscoderError, S3StorageError) as exc:
            logger.warning("Transcode submit failed org=%s video=%s: %s", org_id, video.id, exc)
            raise UpstreamFailure("Could not start transcoding") from exc

        updated = await self._videos.attach_transcoder_asset(
            video.id, org_id=org_id, asset_id=asset.asset_id, playback_id=asset.playback_id
        )
        if updated is None:
            raise NotFound("Video not found")
        logger.info("Transcode started org=%s video=%s asset=%s", org_id, video.id, asset.asset_id)
        return updated, False

    # ── archive ───────────────────────────────────────────────
    async def archive(self, *, org_id: str, video_id: str) -> VideoRecord:
        video = await self._owned(org_id, video_id)
        updated = await self._videos.set_archived(video.id, org_id=org_id, archived_at=self._clock())
        if updated is None:
            raise NotFound("Video not found")
        return updated

    async def unarchive(self, *, org_id: str, video_id: str) -> VideoRecord:
        video = await self._owned(org_id, video_id)
        updated = await self._videos.set_archived(video.id, org_id=org_id, archived_at=None)
        if updated is None:
            raise NotFound("Video not found")
        return updated

    # ── delete ────────────────────────────────────────────────

    async def delete(self, *, org_id: str, video_id: str) -> VideoRecord:
        vid = (video_id or "").strip()
        video = await self._videos.get(vid, org_id=org_id) if vid else None
        if video is None:
            raise NotFound()

        if video.transcoder_asset_id and self._transcoder is None:
            raise UpstreamFailure("Transcoder not configured")
        if video.original_key and self._blobs is None:
            raise UpstreamFailure("Object storage not configured")
        try:
            if video.transcoder_asset_id:
                await self._transcoder.delete_asset(video.transcoder_asset_id)
            if video.original_key:
                self._blobs.delete(video.original_key)
        except (TranscoderError, S3StorageError) as exc:
            logger.warning("Video delete aborted org=%s video=%s: %s", org_id, vid, exc)
            raise UpstreamFailure("Could not remove stored media") from exc

        deleted = await self._videos.delete_cascade(org_id, vid, now=self._clock())
        if deleted is None:
            # Deleted concurrently between the lookup and the transaction.
            raise NotFound()
        logger.info(
            "Video deleted org=%s video=%s released_bytes=%d",
            org_id, vid, int(video.original_size or 0),
        )
        return deleted

    async def download_url(
        self,
        video_id: str,
        *,
        owner_org_id: Optional[str] = None,
        grant: Optional[AccessGrant] = None,
    ) -> str:
        """Signed URL for the stored original.

        Owners may download any live video of their org. Share recipients need
        the video in their grant and the download permission; anything else is
        a generic 403 so the grant never reveals what exists outside it.
        """
        vid = (video_id or "").strip()
        if owner_org_id is not None:
            video = await self._videos.get(vid, org_id=owner_org_id)
            if video is None or not video.original_key:
                raise NotFound("Video not found")
        elif grant is not None:
            if not grant.allows(vid) or not grant.permissions.allow_download:
                raise NotAuthorized()
            video = await self._videos.get(vid, org_id=grant.org_id)
            if video is None or not video.original_key:
                raise NotAuthorized()
        else:
            raise NotAuthorized()

        if self._blobs is None:
            raise UpstreamFailure("Object storage not configured")
        try:
            return self._blobs.presigned_get(
                video.original_key,
                response_content_disposition=f'attachment; filename="{_download_name(video)}"',
            )
        except S3StorageError as exc:
            raise UpstreamFailure("Could not sign download") from exc

    async def apply_transcoder_event(self, event: TranscoderEvent) -> Optional[VideoRecord]:
        """Persist playback id and processing state; unknown assets are ignored."""
        if not event.asset_id or event.status is None:
            return None
        video = await self._videos.find_by_asset_id(event.asset_id)
        if video is None:
            logger.info("Transcoder event for unknown asset=%s type=%s", event.asset_id, event.type)
            return None
        thumb = thumbnail_url(event.playback_id, event.duration) if event.playback_id else None
        updated = await self._videos.update_transcoding(
            video.id,
            status=event.status,
            playback_id=event.playback_id,
            thumbnail_url=thumb if event.status is VideoStatus.READY else None,
        )
        logger.info("Video %s transcoding state=%s", video.id, event.status.value)
        return updated


__all__ = ["VideoLifecycle", "UploadTicket", "original_key_for"]
