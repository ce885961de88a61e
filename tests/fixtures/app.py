# tests/fixtures/app.py

"""
🧩 App Fixture:
- Builds the FastAPI app through the real factory
- Swaps every repository for a memory one over the test's `memory_db`
- Swaps object storage and the transcoder for recording fakes
- Returns an HTTP client fixture for integration tests
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.dependencies import get_blob_client, get_transcoder
from app.main import create_app
from app.repositories.comments import get_comment_repository
from app.repositories.galleries import get_gallery_repository
from app.repositories.shares import get_share_repository
from app.repositories.storage import get_storage_repository
from app.repositories.videos import get_video_repository


@pytest.fixture()
def app(repos, fake_blobs, fake_transcoder) -> FastAPI:
    """🧪 App instance wired to in-memory repositories and media fakes."""
    app = create_app()
    app.dependency_overrides[get_share_repository] = lambda: repos.shares
    app.dependency_overrides[get_video_repository] = lambda: repos.videos
    app.dependency_overrides[get_comment_repository] = lambda: repos.comments
    app.dependency_overrides[get_gallery_repository] = lambda: repos.galleries
    app.dependency_overrides[get_storage_repository] = lambda: repos.storage
    app.dependency_overrides[get_blob_client] = lambda: fake_blobs
    app.dependency_overrides[get_transcoder] = lambda: fake_transcoder
    return app


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """🌐 HTTP client for sending requests to the test app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
