# tests/fixtures/memory.py

"""
🗃️ Memory DB Fixtures:
- A fresh `MemoryDatabase` per test
- Memory repositories bound to it
"""

from types import SimpleNamespace

import pytest

from app.repositories.base import MemoryDatabase
from app.repositories.comments import MemoryCommentRepository
from app.repositories.galleries import MemoryGalleryRepository
from app.repositories.shares import MemoryShareRepository
from app.repositories.storage import MemoryStorageRepository
from app.repositories.videos import MemoryVideoRepository


@pytest.fixture()
def memory_db() -> MemoryDatabase:
    """🧪 Isolated in-memory tables for one test."""
    return MemoryDatabase()


@pytest.fixture()
def repos(memory_db: MemoryDatabase) -> SimpleNamespace:
    """Every memory repository over the same `memory_db`."""
    return SimpleNamespace(
        shares=MemoryShareRepository(memory_db),
        videos=MemoryVideoRepository(memory_db),
        comments=MemoryCommentRepository(memory_db),
        galleries=MemoryGalleryRepository(memory_db),
        storage=MemoryStorageRepository(memory_db),
    )


__all__ = ["memory_db", "repos"]
