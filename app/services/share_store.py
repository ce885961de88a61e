from __future__ import annotations

"""
🗃️ Ephemeral share payload store
================================

Short-lived, process-local cache of `SharePayload`s keyed by share id (the
token). It exists only to avoid recomputing a gallery view on every page hit;
a miss just means the payload is rebuilt from the database.

- One TTL for every entry, fixed at construction
  (`settings.SHARE_STORE_TTL_SECONDS`).
- Reads never extend an entry's lifetime.
- Expired entries are evicted lazily on read; there is no sweeper.
- All operations hold a `threading.Lock`, so the store is safe to share
  between worker threads of one process. It is not shared across processes.

One instance is created by the app factory and kept on `app.state`; routes
receive it through `app.core.dependencies.get_share_store`.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from app.schemas.share import SharePayload

Clock = Callable[[], float]


class EphemeralShareStore:
    def __init__(self, ttl_seconds: float, *, clock: Clock = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, Tuple[float, SharePayload]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def save(self, payload: SharePayload) -> SharePayload:
        """Store (or replace) the payload under its `share_id`."""
        expires_at = self._clock() + self._ttl
        with self._lock:
            self._entries[payload.share_id] = (expires_at, payload)
        return payload

    def get(self, share_id: str) -> Optional[SharePayload]:
        with self._lock:
            entry = self._entries.get(share_id)
            if entry is None:
                return None
            expires_at, payload = entry
            if self._clock() >= expires_at:
                del self._entries[share_id]
                return None
            return payload

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["EphemeralShareStore"]
