from __future__ import annotations

"""
Fake media collaborators
========================
Stand-ins for the object store (`S3Client`) and the transcoder client with the
same method names the services call. Each records its calls and can be told
to fail, so tests can assert ordering and rollback behavior.
"""

from typing import Dict, List, Optional

import pytest

from app.services.transcoding import TranscoderAsset, TranscoderError
from app.utils.aws import S3StorageError


class FakeBlobStore:
    def __init__(self) -> None:
        self.deleted: List[str] = []
        self.signed: List[dict] = []
        self.uploads: List[dict] = []
        self.fail_delete = False
        self.fail_sign = False

    def presigned_get(
        self,
        key: str,
        *,
        expires_in: Optional[int] = None,
        response_content_disposition: Optional[str] = None,
    ) -> str:
        self.signed.append({"key": key, "disposition": response_content_disposition})
        return f"https://blobs.example.com/{key}?sig=test"

    def presigned_put(
        self,
        key: str,
        *,
        content_type: str,
        expires_in: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        if self.fail_sign:
            raise S3StorageError("sign failed")
        self.uploads.append({"key": key, "content_type": content_type, "metadata": metadata})
        return f"https://blobs.example.com/{key}?sig=put"

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise S3StorageError("delete failed")
        self.deleted.append(key)


class FakeTranscoder:
    def __init__(self) -> None:
        self.deleted: List[str] = []
        self.created: List[str] = []
        self.fail_delete = False
        self.fail_create = False

    async def create_asset(self, source_url: str) -> TranscoderAsset:
        if self.fail_create:
            raise TranscoderError("create_asset failed with HTTP 500")
        self.created.append(source_url)
        n = len(self.created)
        return TranscoderAsset(asset_id=f"asset-{n}", playback_id=f"pb-{n}", status="preparing")

    async def delete_asset(self, asset_id: str) -> None:
        if self.fail_delete:
            raise TranscoderError("delete_asset failed with HTTP 500")
        self.deleted.append(asset_id)


@pytest.fixture()
def fake_blobs() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture()
def fake_transcoder() -> FakeTranscoder:
    return FakeTranscoder()


__all__ = ["FakeBlobStore", "FakeTranscoder", "fake_blobs", "fake_transcoder"]
