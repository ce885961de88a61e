from __future__ import annotations

"""
🔑 Share-link authority
=======================

Turns an opaque share token into an immutable `AccessGrant`, and issues new
tokens for owners.

Validation outcomes
-------------------
- blank token                              -> MISSING_TOKEN (400)
- unknown token, or a link whose scope
  resolves to no video ids                 -> INVALID_TOKEN (404)
- known, non-empty scope, expiry passed    -> EXPIRED (410)

Scope is resolved before expiry is checked, so an expired link with an empty
scope is reported as INVALID_TOKEN like any other unusable token. Unknown and
revoked tokens are indistinguishable to the caller.

A grant authorizes exactly `allowed_video_ids`. Routes must still call
`require_video_in_grant` before returning anything about a specific video.
"""

import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Tuple

from fastapi import Request

from app.core.config import settings
from app.core.exceptions import NotAuthorized, NotFound, ShareTokenError, ValidationFailed
from app.core.logger import mask_token
from app.repositories.galleries import GalleryRepositoryProtocol
from app.repositories.records import ShareLinkRecord
from app.repositories.shares import ShareRepositoryProtocol
from app.repositories.videos import VideoRepositoryProtocol
from app.schemas.enums import ShareView
from app.schemas.share import AccessGrant, SharePermissions
from app.services.stacks import normalize_stacks, parse_stacks_json, sanitize_stacks

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive values from the database are stored as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _clean_ids(values: Iterable[object]) -> List[str]:
    out: List[str] = []
    for value in values:
        if value is None:
            continue
        vid = str(value).strip()
        if vid and vid not in out:
            out.append(vid)
    return out


# ─────────────────────────────────────────────────────────────
# Scope & token carriers
# ─────────────────────────────────────────────────────────────

def parse_allowed_video_ids(record: ShareLinkRecord) -> List[str]:
    """Video ids a share link grants.

    Legacy single-video links use their `video_id`; gallery links store a JSON
    array. Malformed JSON or a non-array yields an empty scope.
    """
    legacy = (record.video_id or "").strip()
    if legacy:
        return [legacy]
    raw = record.allowed_video_ids_json
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return _clean_ids(v for v in parsed if isinstance(v, (str, int)) and not isinstance(v, bool))


def extract_share_token(request: Request) -> Optional[str]:
    """First non-empty token from query `token`, then header, then cookie."""
    candidates = (
        request.query_params.get("token"),
        request.headers.get(settings.SHARE_TOKEN_HEADER),
        request.cookies.get(settings.SHARE_TOKEN_COOKIE),
    )
    for candidate in candidates:
        token = (candidate or "").strip()
        if token:
            return token
    return None


def require_video_in_grant(grant: AccessGrant, video_id: Optional[str]) -> str:
    """Return the cleaned id, or 403 when it is outside the grant."""
    vid = (video_id or "").strip()
    if not vid or not grant.allows(vid):
        raise NotAuthorized()
    return vid


# ─────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────

class ShareAuthority:
    def __init__(self, repository: ShareRepositoryProtocol, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    async def resolve(self, token: Optional[str]) -> Tuple[AccessGrant, ShareLinkRecord]:
        """Validate `token` and also return the stored link."""
        t = (token or "").strip()
        if not t:
            raise ShareTokenError.missing()

        record = await self._repository.get_by_token(t)
        if record is None:
            logger.info("Share token rejected: unknown token=%s", mask_token(t))
            raise ShareTokenError.invalid()

        allowed = parse_allowed_video_ids(record)
        if not allowed:
            logger.info("Share token rejected: empty scope token=%s", mask_token(t))
            raise ShareTokenError.invalid()

        if record.expires_at is not None and _as_utc(record.expires_at) < self._clock():
            logger.info("Share token rejected: expired token=%s", mask_token(t))
            raise ShareTokenError.expired()

        grant = AccessGrant(
            token=record.token,
            org_id=record.org_id,
            allowed_video_ids=tuple(allowed),
            permissions=SharePermissions(
                view=ShareView.coerce(record.view),
                allow_comments=bool(record.allow_comments),
                allow_download=bool(record.allow_download),
            ),
            expires_at=record.expires_at,
            gallery_id=record.gallery_id,
            title=record.title,
            video_id=(record.video_id or None),
            stacks=normalize_stacks(parse_stacks_json(record.stacks_json), allowed),
        )
        return grant, record

    async def validate(self, token: Optional[str]) -> AccessGrant:
        grant, _ = await self.resolve(token)
        return grant


# ─────────────────────────────────────────────────────────────
# Issuing
# ─────────────────────────────────────────────────────────────

def new_share_token(nbytes: Optional[int] = None) -> str:
    """URL-safe random token (24 bytes of entropy by default)."""
    return secrets.token_urlsafe(nbytes or settings.SHARE_TOKEN_BYTES)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


class ShareLinkIssuer:
    """Creates share links on behalf of an owner, scoped to the owner's org."""

    def __init__(
        self,
        shares: ShareRepositoryProtocol,
        videos: VideoRepositoryProtocol,
        galleries: GalleryRepositoryProtocol,
        clock: Clock = utcnow,
    ) -> None:
        self._shares = shares
        self._videos = videos
        self._galleries = galleries
        self._clock = clock

    def _expiry(self, expires_in_days: Optional[float]) -> Optional[datetime]:
        if not expires_in_days:
            return None
        return self._clock() + timedelta(days=float(expires_in_days))

    async def create_video_share(
        self,
        *,
        org_id: str,
        video_id: str,
        allow_comments: bool = True,
        allow_download: bool = False,
        expires_in_days: Optional[float] = None,
        contact_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> ShareLinkRecord:
        vid = (video_id or "").strip()
        if not vid:
            raise ValidationFailed("video_id is required")
        video = await self._videos.get(vid)
        if video is None:
            raise NotFound("Video not found")
        if video.org_id != org_id:
            raise NotAuthorized()

        record = ShareLinkRecord(
            id="",
            org_id=org_id,
            token=new_share_token(),
            video_id=vid,
            view=ShareView.REVIEW_DOWNLOAD,
            allow_comments=allow_comments,
            allow_download=allow_download,
            expires_at=self._expiry(expires_in_days),
            contact_id=_clean_optional(contact_id),
            conversation_id=_clean_optional(conversation_id),
        )
        created = await self._shares.create(record)
        logger.info("Share link created org=%s video=%s token=%s", org_id, vid, mask_token(created.token))
        return created

    async def create_gallery_share(
        self,
        *,
        org_id: str,
        allowed_video_ids: Iterable[object],
        gallery_id: Optional[str] = None,
        title: Optional[str] = None,
        stacks: Optional[object] = None,
        view: object = ShareView.REVIEW_DOWNLOAD,
        allow_comments: bool = True,
        allow_download: bool = False,
        expires_in_days: Optional[float] = None,
        contact_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> ShareLinkRecord:
        allowed = _clean_ids(allowed_video_ids or ())
        if not allowed:
            raise ValidationFailed("allowed_video_ids is required")

        gid = _clean_optional(gallery_id)
        if gid:
            gallery = await self._galleries.get(gid, org_id=org_id)
            if gallery is None:
                raise NotFound("Gallery not found")
            members = set(gallery.video_ids)
            outside = [vid for vid in allowed if vid not in members]
            if outside:
                raise ValidationFailed("Video not in this gallery", details={"video_ids": outside})
        else:
            videos = await self._videos.list_by_ids(allowed)
            if len(videos) != len(allowed):
                raise NotFound("One or more videos not found")
            if any(v.org_id != org_id for v in videos):
                raise NotAuthorized()

        record = ShareLinkRecord(
            id="",
            org_id=org_id,
            token=new_share_token(),
            gallery_id=gid,
            title=_clean_optional(title),
            allowed_video_ids_json=json.dumps(allowed),
            stacks_json=json.dumps(normalize_stacks(sanitize_stacks(stacks), allowed)),
            view=ShareView.coerce(view),
            allow_comments=allow_comments,
            allow_download=allow_download,
            expires_at=self._expiry(expires_in_days),
            contact_id=_clean_optional(contact_id),
            conversation_id=_clean_optional(conversation_id),
        )
        created = await self._shares.create(record)
        logger.info(
            "Gallery share created org=%s gallery=%s videos=%d token=%s",
            org_id, gid, len(allowed), mask_token(created.token),
        )
        return created


__all__ = [
    "Clock",
    "utcnow",
    "parse_allowed_video_ids",
    "extract_share_token",
    "require_video_in_grant",
    "ShareAuthority",
    "ShareLinkIssuer",
    "new_share_token",
]
