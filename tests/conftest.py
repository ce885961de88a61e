# tests/conftest.py
"""
Global test bootstrap
- Sets the minimum env the settings object needs BEFORE the app is imported
- Forces the in-memory repository backend (no database required)
- Pulls in the shared fixtures (memory db, app, owner auth, media fakes)
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (must be set before importing anything from `app`)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("OWNER_SESSION_SECRET", "test-owner-session-secret-0123456789")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("REPOSITORY_BACKEND", "memory")
os.environ.setdefault("PUBLIC_BASE_URL", "https://review.example.com")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.pop("TRANSCODER_WEBHOOK_SECRETS", None)

import pytest  # noqa: E402

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Shared fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.memory import *       # noqa: F401,F403,E402
from tests.fixtures.mocks.media import *  # noqa: F401,F403,E402
from tests.fixtures.app import *          # noqa: F401,F403,E402
from tests.fixtures.auth import *         # noqa: F401,F403,E402


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
