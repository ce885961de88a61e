from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from sqlalchemy import select

from app.db.base_class import new_id
from app.db.models import Comment
from app.db.session import async_session_maker
from app.repositories.base import MemoryDatabase, resolve_repository
from app.repositories.records import CommentRecord
from app.schemas.enums import CommentStatus


class CommentRepositoryProtocol:
    async def list_for_token(self, token: str, video_id: str) -> List[CommentRecord]:
        """Comments written under one share token on one video."""
        raise NotImplementedError

    async def list_for_org(self, org_id: str, video_id: str) -> List[CommentRecord]:
        """Every comment (owner and client) on an org's video."""
        raise NotImplementedError

    async def get(self, comment_id: str) -> Optional[CommentRecord]:
        raise NotImplementedError

    async def create(self, record: CommentRecord) -> CommentRecord:
        raise NotImplementedError

    async def set_status(self, comment_id: str, status: CommentStatus) -> Optional[CommentRecord]:
        raise NotImplementedError


class MemoryCommentRepository(CommentRepositoryProtocol):
    def __init__(self, db: MemoryDatabase) -> None:
        self._db = db

    async def list_for_token(self, token: str, video_id: str) -> List[CommentRecord]:
        with self._db.lock:
            return [c for c in self._db.comments.values() if c.token == token and c.video_id == video_id]

    async def list_for_org(self, org_id: str, video_id: str) -> List[CommentRecord]:
        with self._db.lock:
            return [c for c in self._db.comments.values() if c.org_id == org_id and c.video_id == video_id]

    async def get(self, comment_id: str) -> Optional[CommentRecord]:
        with self._db.lock:
            return self._db.comments.get(comment_id)

    async def create(self, record: CommentRecord) -> CommentRecord:
        with self._db.lock:
            stored = replace(record, id=record.id or new_id())
            self._db.comments[stored.id] = stored
            return stored

    async def set_status(self, comment_id: str, status: CommentStatus) -> Optional[CommentRecord]:
        with self._db.lock:
            current = self._db.comments.get(comment_id)
            if current is None:
                return None
            updated = replace(current, status=status)
            self._db.comments[comment_id] = updated
            return updated


def _to_record(row: Comment) -> CommentRecord:
    return CommentRecord(
        id=row.id,
        org_id=row.org_id,
        video_id=row.video_id,
        body=row.body,
        created_at=row.created_at,
        token=row.token,
        timecode_ms=row.timecode_ms or 0,
        author=row.author,
        role=row.role,
        status=row.status,
        parent_id=row.parent_id,
    )


class SQLCommentRepository(CommentRepositoryProtocol):
    def __init__(self, session_factory=async_session_maker) -> None:
        self._session_factory = session_factory

    async def _list(self, *criteria) -> List[CommentRecord]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(Comment).where(*criteria).order_by(Comment.timecode_ms, Comment.created_at)
                )
            ).scalars().all()
            return [_to_record(r) for r in rows]

    async def list_for_token(self, token: str, video_id: str) -> List[CommentRecord]:
        return await self._list(Comment.token == token, Comment.video_id == video_id)

    async def list_for_org(self, org_id: str, video_id: str) -> List[CommentRecord]:
        return await self._list(Comment.org_id == org_id, Comment.video_id == video_id)

    async def get(self, comment_id: str) -> Optional[CommentRecord]:
        async with self._session_factory() as session:
            row = await session.get(Comment, comment_id)
            return _to_record(row) if row else None

    async def create(self, record: CommentRecord) -> CommentRecord:
        async with self._session_factory() as session:
            async with session.begin():
                row = Comment(
                    id=record.id or new_id(),
                    org_id=record.org_id,
                    token=record.token,
                    video_id=record.video_id,
                    timecode_ms=record.timecode_ms,
                    body=record.body,
                    author=record.author,
                    role=record.role,
                    status=record.status,
                    parent_id=record.parent_id,
                    created_at=record.created_at,
                )
                session.add(row)
                await session.flush()
                return _to_record(row)

    async def set_status(self, comment_id: str, status: CommentStatus) -> Optional[CommentRecord]:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(Comment, comment_id, with_for_update=True)
                if row is None:
                    return None
                row.status = status
                await session.flush()
                return _to_record(row)


def get_comment_repository() -> CommentRepositoryProtocol:
    return resolve_repository(
        "COMMENT_REPOSITORY_IMPL",
        memory=MemoryCommentRepository,
        sql=SQLCommentRepository,
    )
