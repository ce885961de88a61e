from __future__ import annotations

"""
🎞️ ReelShare — Video
====================

One uploaded file. `original_key`/`original_size` describe the stored original
in object storage; `transcoder_asset_id`/`playback_id` describe the streaming
rendition. Deletion is soft (`deleted_at`) so comments and audit stay
explainable, but the stored bytes are released.
"""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Numeric, String, Text, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, SoftDeleteMixin, TimestampMixin, new_id
from app.schemas.enums import VideoStatus


class Video(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=new_id)
    org_id = Column(String(36), ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(300), nullable=False, server_default=text("''"))
    description = Column(Text, nullable=True)

    status = Column(
        Enum(VideoStatus, name="video_status"),
        nullable=False,
        server_default=VideoStatus.UPLOADING.value,
    )

    original_key = Column(String(1024), nullable=True, doc="Object key of the uploaded original.")
    original_size = Column(Numeric(20, 0), nullable=True, doc="Size of the original in bytes.")

    transcoder_asset_id = Column(String(128), nullable=True, index=True)
    playback_id = Column(String(128), nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)

    archived_at = Column(DateTime(timezone=True), nullable=True)

    org = relationship("Org", back_populates="videos")

    __table_args__ = (
        Index("ix_videos_org_live", "org_id", "deleted_at"),
    )
