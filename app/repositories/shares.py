from __future__ import annotations

"""Share-link persistence.

Lookups are by token only; a missing row and a revoked row look the same to
callers.
"""

from dataclasses import replace
from typing import Optional

from sqlalchemy import select

from app.db.base_class import new_id
from app.db.models import ShareLink
from app.db.session import async_session_maker
from app.repositories.base import MemoryDatabase, resolve_repository
from app.repositories.records import ShareLinkRecord


class ShareRepositoryProtocol:
    async def get_by_token(self, token: str) -> Optional[ShareLinkRecord]:
        raise NotImplementedError

    async def create(self, record: ShareLinkRecord) -> ShareLinkRecord:
        raise NotImplementedError


class MemoryShareRepository(ShareRepositoryProtocol):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def get_by_token(self, token: str) -> Optional[ShareLinkRecord]:
        if not token:
            return None
        with self._db.lock:
            return self._db.share_links_by_token().get(token)

    async def create(self, record: ShareLinkRecord) -> ShareLinkRecord:
        with self._db.lock:
            if record.token in self._db.share_links_by_token():
                raise ValueError("share token already exists")
            stored = replace(record, id=record.id or new_id())
            self._db.share_links[stored.id] = stored
            return stored


def _to_record(row: ShareLink) -> ShareLinkRecord:
    return ShareLinkRecord(
        id=row.id,
        org_id=row.org_id,
        token=row.token,
        video_id=row.video_id,
        gallery_id=row.gallery_id,
        title=row.title,
        allowed_video_ids_json=row.allowed_video_ids_json,
        stacks_json=row.stacks_json,
        view=row.view,
        allow_comments=bool(row.allow_comments),
        allow_download=bool(row.allow_download),
        expires_at=row.expires_at,
        contact_id=row.contact_id,
        conversation_id=row.conversation_id,
        created_at=row.created_at,
    )


class SQLShareRepository(ShareRepositoryProtocol):
    def __init__(self, session_factory=async_session_maker) -> None:
        self._session_factory = session_factory

    async def get_by_token(self, token: str) -> Optional[ShareLinkRecord]:
        if not token:
            return None
        async with self._session_factory() as session:
            row = (
                await session.execute(select(ShareLink).where(ShareLink.token == token))
            ).scalar_one_or_none()
            return _to_record(row) if row else None

    async def create(self, record: ShareLinkRecord) -> ShareLinkRecord:
        async with self._session_factory() as session:
            async with session.begin():
                row = ShareLink(
                    id=record.id or new_id(),
                    org_id=record.org_id,
                    token=record.token,
                    video_id=record.video_id,
                    gallery_id=record.gallery_id,
                    title=record.title,
                    allowed_video_ids_json=record.allowed_video_ids_json,
                    stacks_json=record.stacks_json,
                    view=record.view,
                    allow_comments=record.allow_comments,
                    allow_download=record.allow_download,
                    expires_at=record.expires_at,
                    contact_id=record.contact_id,
                    conversation_id=record.conversation_id,
                )
                session.add(row)
                await session.flush()
                await session.refresh(row)
                return _to_record(row)


def get_share_repository() -> ShareRepositoryProtocol:
    return resolve_repository(
        "SHARE_REPOSITORY_IMPL",
        memory=MemoryShareRepository,
        sql=SQLShareRepository,
    )
