from __future__ import annotations

"""Backend selection shared by the repository factories, plus the in-memory store."""

import os
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Dict, List, TypeVar

from app.repositories.records import (
    CommentRecord,
    GalleryRecord,
    OrgRecord,
    ShareLinkRecord,
    VideoRecord,
)

T = TypeVar("T")


@dataclass
class MemoryDatabase:
    """Process-local tables shared by all Memory*Repository instances.

    Mutations that must be atomic take `lock` and only write after every
    precondition has been checked.
    """

    orgs: Dict[str, OrgRecord] = field(default_factory=dict)
    videos: Dict[str, VideoRecord] = field(default_factory=dict)
    galleries: Dict[str, GalleryRecord] = field(default_factory=dict)
    comments: Dict[str, CommentRecord] = field(default_factory=dict)
    share_links: Dict[str, ShareLinkRecord] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)

    def share_links_by_token(self) -> Dict[str, ShareLinkRecord]:
        return {s.token: s for s in self.share_links.values()}

    def galleries_containing(self, video_id: str) -> List[GalleryRecord]:
        return [g for g in self.galleries.values() if video_id in g.video_ids]


@lru_cache(maxsize=1)
def get_memory_database() -> MemoryDatabase:
    return MemoryDatabase()


def _import_string(path: str, env_name: str):
    module_path, _, class_name = path.partition(":")
    if not module_path or not class_name:
        raise ValueError(f"{env_name} must be 'module.sub:ClassName'")
    module = __import__(module_path, fromlist=[class_name])
    return getattr(module, class_name)


def resolve_repository(
    env_name: str,
    *,
    memory: Callable[[MemoryDatabase], T],
    sql: Callable[[], T],
) -> T:
    """Pick an implementation: explicit `<env_name>` class, then `REPOSITORY_BACKEND`."""
    impl_path = os.environ.get(env_name)
    if impl_path:
        cls = _import_string(impl_path, env_name)
        return cls()  # type: ignore
    backend = os.environ.get("REPOSITORY_BACKEND", "sql").strip().lower()
    if backend == "memory":
        return memory(get_memory_database())
    return sql()
