from __future__ import annotations

"""
🏢 ReelShare — Org (tenant)
===========================

An organization owns videos, galleries and share links. `storage_used_bytes`
is a cached counter of the bytes held in object storage for the org's live
videos; upload reservations increment it, deletes decrement it and
reconciliation overwrites it.
"""

from sqlalchemy import CheckConstraint, Column, Numeric, String, text
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin, new_id


class Org(TimestampMixin, Base):
    __tablename__ = "orgs"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, server_default=text("''"))

    # NUMERIC(20,0) keeps byte totals exact beyond 2**53.
    storage_used_bytes = Column(
        Numeric(20, 0),
        nullable=False,
        server_default=text("0"),
        doc="Cached sum of original_size over live, storage-backed videos.",
    )

    videos = relationship("Video", back_populates="org", lazy="selectin")

    __table_args__ = (
        CheckConstraint("storage_used_bytes >= 0", name="storage_used_non_negative"),
    )
