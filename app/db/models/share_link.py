from __future__ import annotations

"""
🔗 ReelShare — ShareLink
========================

Capability token granting a recipient access to a fixed set of videos.

• Legacy single-video links set `video_id`; gallery links store their scope in
  `allowed_video_ids_json` (raw JSON array, parsed defensively).
• `stacks_json` is a snapshot of the gallery's stacks at share time and is
  normalized against the allow-list on every read.
• `expires_at` NULL means the link never expires.
"""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, String, Text, func, text

from app.db.base_class import Base, new_id
from app.schemas.enums import ShareView


class ShareLink(Base):
    __tablename__ = "share_links"

    id = Column(String(36), primary_key=True, default=new_id)
    org_id = Column(String(36), ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), nullable=False, unique=True)

    video_id = Column(String(36), ForeignKey("videos.id", ondelete="SET NULL"), nullable=True, index=True)
    gallery_id = Column(String(36), ForeignKey("galleries.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(300), nullable=True)

    allowed_video_ids_json = Column(Text, nullable=True)
    stacks_json = Column(Text, nullable=True)

    view = Column(Enum(ShareView, name="share_view"), nullable=False, server_default=ShareView.REVIEW_DOWNLOAD.value)
    allow_comments = Column(Boolean, nullable=False, server_default=text("true"))
    allow_download = Column(Boolean, nullable=False, server_default=text("false"))

    expires_at = Column(DateTime(timezone=True), nullable=True)
    contact_id = Column(String(64), nullable=True)
    conversation_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
