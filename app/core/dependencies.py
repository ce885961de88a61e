# app/core/dependencies.py
from __future__ import annotations

"""
Request dependencies — ReelShare
================================

Wires repositories, collaborators and services into routes. Every piece is a
plain FastAPI dependency so tests can swap any of them with
`app.dependency_overrides`.

- Repositories come from `app.repositories.*.get_*_repository`.
- The ephemeral share store lives on `app.state.share_store` (created by the
  app factory), never in a module global.
- `get_access_grant` validates the share token carried by the request.
"""

from typing import Optional
import logging

from fastapi import Depends, Request

from app.core.config import settings
from app.repositories.galleries import GalleryRepositoryProtocol, get_gallery_repository
from app.repositories.shares import ShareRepositoryProtocol, get_share_repository
from app.repositories.storage import StorageRepositoryProtocol, get_storage_repository
from app.repositories.videos import VideoRepositoryProtocol, get_video_repository
from app.schemas.share import AccessGrant
from app.services.share_authority import ShareAuthority, ShareLinkIssuer, extract_share_token
from app.services.share_store import EphemeralShareStore
from app.services.storage_accounting import StorageAccounting
from app.services.transcoding import TranscoderClient
from app.services.video_lifecycle import VideoLifecycle
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger(__name__)

__all__ = [
    "get_share_store",
    "get_share_authority",
    "get_share_issuer",
    "get_access_grant",
    "get_optional_access_grant",
    "get_storage_accounting",
    "get_blob_client",
    "get_transcoder",
    "get_video_lifecycle",
]


# ──────────────────────────────────────────────────────────────
# 🗃️ Share store (app-scoped)
# ──────────────────────────────────────────────────────────────
def get_share_store(request: Request) -> EphemeralShareStore:
    store = getattr(request.app.state, "share_store", None)
    if store is None:
        # Apps built without the factory (e.g. router-only tests) get one lazily.
        store = EphemeralShareStore(settings.SHARE_STORE_TTL_SECONDS)
        request.app.state.share_store = store
    return store


# ──────────────────────────────────────────────────────────────
# 🔑 Share links
# ──────────────────────────────────────────────────────────────
def get_share_authority(
    shares: ShareRepositoryProtocol = Depends(get_share_repository),
) -> ShareAuthority:
    return ShareAuthority(shares)


def get_share_issuer(
    shares: ShareRepositoryProtocol = Depends(get_share_repository),
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
    galleries: GalleryRepositoryProtocol = Depends(get_gallery_repository),
) -> ShareLinkIssuer:
    return ShareLinkIssuer(shares, videos, galleries)


async def get_access_grant(
    request: Request,
    authority: ShareAuthority = Depends(get_share_authority),
) -> AccessGrant:
    """Grant for the token in query / header / cookie; typed failure otherwise."""
    return await authority.validate(extract_share_token(request))


async def get_optional_access_grant(
    request: Request,
    authority: ShareAuthority = Depends(get_share_authority),
) -> Optional[AccessGrant]:
    """Like `get_access_grant`, but None when no token is carried at all."""
    token = extract_share_token(request)
    if not token:
        return None
    return await authority.validate(token)


# ──────────────────────────────────────────────────────────────
# 💾 Storage & media collaborators
# ──────────────────────────────────────────────────────────────
def get_storage_accounting(
    repository: StorageRepositoryProtocol = Depends(get_storage_repository),
) -> StorageAccounting:
    return StorageAccounting(repository)


def get_blob_client() -> Optional[S3Client]:
    try:
        return S3Client()
    except S3StorageError as e:
        logger.warning("Object storage unavailable: %s", e)
        return None


def get_transcoder() -> Optional[TranscoderClient]:
    if not settings.TRANSCODER_TOKEN_ID:
        return None
    return TranscoderClient()


def get_video_lifecycle(
    videos: VideoRepositoryProtocol = Depends(get_video_repository),
    blobs: Optional[S3Client] = Depends(get_blob_client),
    transcoder: Optional[TranscoderClient] = Depends(get_transcoder),
) -> VideoLifecycle:
    return VideoLifecycle(videos, blobs=blobs, transcoder=transcoder)

