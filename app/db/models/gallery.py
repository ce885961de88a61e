from __future__ import annotations

"""
🖼️ ReelShare — Gallery & GalleryVideo
=====================================

A gallery is an ordered set of videos shown as a grid. `stacks_json` holds the
gallery's version stacks as raw JSON; it is sanitized on every read.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin, new_id


class Gallery(TimestampMixin, Base):
    __tablename__ = "galleries"

    id = Column(String(36), primary_key=True, default=new_id)
    org_id = Column(String(36), ForeignKey("orgs.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(300), nullable=False, server_default=text("''"))
    stacks_json = Column(Text, nullable=True, doc="Raw StackMap JSON (untrusted).")
    archived_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "GalleryVideo",
        back_populates="gallery",
        order_by="GalleryVideo.sort_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class GalleryVideo(Base):
    __tablename__ = "gallery_videos"

    gallery_id = Column(String(36), ForeignKey("galleries.id", ondelete="CASCADE"), primary_key=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True, index=True)
    sort_order = Column(Integer, nullable=False, server_default=text("0"))

    gallery = relationship("Gallery", back_populates="items")
