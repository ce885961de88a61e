from __future__ import annotations

"""Build the gallery view a share recipient sees, with store caching."""

import logging
from typing import Optional

from app.core.config import settings
from app.core.logger import mask_token
from app.repositories.records import VideoRecord
from app.repositories.videos import VideoRepositoryProtocol
from app.schemas.share import AccessGrant, ShareGalleryVideo, SharePayload
from app.services.comment_thread import iso_timestamp
from app.services.share_authority import ShareAuthority
from app.services.share_store import EphemeralShareStore

logger = logging.getLogger(__name__)

_THUMBNAIL_TIME_SECONDS = 5


def thumbnail_url_for(video: VideoRecord) -> Optional[str]:
    if video.thumbnail_url:
        return video.thumbnail_url
    if video.playback_id:
        base = settings.TRANSCODER_THUMBNAIL_BASE.rstrip("/")
        return f"{base}/{video.playback_id}/thumbnail.jpg?time={_THUMBNAIL_TIME_SECONDS}"
    return None


async def build_share_payload(grant: AccessGrant, videos: VideoRepositoryProtocol) -> SharePayload:
    """Payload for a validated grant; videos keep the share's order."""
    rows = await videos.list_by_ids(grant.allowed_video_ids, org_id=grant.org_id)
    return SharePayload(
        share_id=grant.token,
        title=grant.title or "Shared Gallery",
        permissions=grant.permissions,
        allowed_video_ids=list(grant.allowed_video_ids),
        stacks=grant.stacks,
        videos=[
            ShareGalleryVideo(
                id=v.id,
                name=v.title or "Untitled",
                description=v.description or "",
                created_at=iso_timestamp(v.created_at),
                thumbnail_url=thumbnail_url_for(v),
            )
            for v in rows
        ],
    )


async def load_share_payload(
    token: Optional[str],
    *,
    authority: ShareAuthority,
    videos: VideoRepositoryProtocol,
    store: EphemeralShareStore,
) -> SharePayload:
    """Validated payload for `token`, served from the store when fresh.

    The token is validated on every call, cache hit or not, so an expired
    link stops working even while its payload is still cached.
    """
    grant = await authority.validate(token)
    cached = store.get(grant.token)
    if cached is not None:
        return cached
    payload = await build_share_payload(grant, videos)
    logger.debug("Share payload built token=%s videos=%d", mask_token(grant.token), len(payload.videos))
    return store.save(payload)


__all__ = ["thumbnail_url_for", "build_share_payload", "load_share_payload"]
