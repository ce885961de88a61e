# app/db/base.py
"""
ReelShare — SQLAlchemy Base registry
====================================

Import all ORM models so their tables are registered on `Base.metadata`.
Alembic's `env.py` imports this module for autogeneration.

Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base

from app.db.models.org import Org
from app.db.models.video import Video
from app.db.models.gallery import Gallery, GalleryVideo
from app.db.models.comment import Comment
from app.db.models.share_link import ShareLink

__all__ = [
    "Base",
    "Org",
    "Video",
    "Gallery",
    "GalleryVideo",
    "Comment",
    "ShareLink",
]
