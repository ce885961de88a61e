from __future__ import annotations

"""
Central enum definitions used across ReelShare.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (DB enums and clients depend on them).
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Owners
# ──────────────────────────────────────────────────────────────
class OwnerRole(str, PyEnum):
    """Role of an authenticated owner within their organization."""
    ADMIN = "ADMIN"
    USER = "USER"


# ──────────────────────────────────────────────────────────────
# Videos
# ──────────────────────────────────────────────────────────────
class VideoStatus(str, PyEnum):
    """Processing state persisted next to the transcoder's playback id."""
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


# ──────────────────────────────────────────────────────────────
# Share links
# ──────────────────────────────────────────────────────────────
class ShareView(str, PyEnum):
    """What a share recipient may do beyond watching."""
    VIEW_ONLY = "VIEW_ONLY"
    REVIEW_DOWNLOAD = "REVIEW_DOWNLOAD"

    @classmethod
    def coerce(cls, value) -> "ShareView":
        """Anything other than an explicit VIEW_ONLY is REVIEW_DOWNLOAD."""
        raw = getattr(value, "value", value)
        return cls.VIEW_ONLY if raw == cls.VIEW_ONLY.value else cls.REVIEW_DOWNLOAD


class ShareFailureCode(str, PyEnum):
    """Result codes of share-token validation."""
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED = "EXPIRED"


# ──────────────────────────────────────────────────────────────
# Comments
# ──────────────────────────────────────────────────────────────
class CommentRole(str, PyEnum):
    OWNER = "OWNER"
    CLIENT = "CLIENT"


class CommentStatus(str, PyEnum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"

    def toggled(self) -> "CommentStatus":
        return CommentStatus.RESOLVED if self is CommentStatus.OPEN else CommentStatus.OPEN


__all__ = [
    "OwnerRole",
    "VideoStatus",
    "ShareView",
    "ShareFailureCode",
    "CommentRole",
    "CommentStatus",
]
