from __future__ import annotations

"""
💬 ReelShare — Comment
======================

Timecoded review comment on a video. Client comments carry the share token
they were written under; owner comments are org-scoped. Replies reference
`parent_id` without a FK so threads survive partial deletes (orphans are
promoted to roots when threaded).
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text, func, text

from app.db.base_class import Base, new_id
from app.schemas.enums import CommentRole, CommentStatus


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=new_id)
    org_id = Column(String(36), ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), nullable=True, index=True, doc="Share token for client comments.")
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)

    timecode_ms = Column(Integer, nullable=False, server_default=text("0"))
    body = Column(Text, nullable=False)
    author = Column(String(120), nullable=True)

    role = Column(Enum(CommentRole, name="comment_role"), nullable=False, server_default=CommentRole.CLIENT.value)
    status = Column(Enum(CommentStatus, name="comment_status"), nullable=False, server_default=CommentStatus.OPEN.value)
    parent_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("timecode_ms >= 0", name="timecode_non_negative"),
        Index("ix_comments_video_token", "video_id", "token"),
    )
