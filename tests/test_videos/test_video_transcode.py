# tests/test_videos/test_video_transcode.py

import pytest
from httpx import AsyncClient

from app.schemas.enums import VideoStatus
from tests.utils.factory import create_org, create_video


def _url(video_id):
    return f"/api/v1/owner/videos/{video_id}/transcode"


@pytest.fixture()
def uploaded(memory_db):
    create_org(memory_db)
    return create_video(memory_db, "v1", status=VideoStatus.UPLOADING)


@pytest.mark.anyio
async def test_transcode_submits_signed_original(
    async_client: AsyncClient, memory_db, uploaded, owner_headers, fake_blobs, fake_transcoder
):
    r = await async_client.post(_url("v1"), headers=owner_headers)

    assert r.status_code == 200
    assert r.json() == {
        "ok": True,
        "video_id": "v1",
        "asset_id": "asset-1",
        "playback_id": "pb-1",
        "status": "PROCESSING",
        "already": False,
    }
    assert fake_blobs.signed[0]["key"] == "orgs/org-1/v1.mp4"
    assert fake_transcoder.created == ["https://blobs.example.com/orgs/org-1/v1.mp4?sig=test"]

    video = memory_db.videos["v1"]
    assert (video.transcoder_asset_id, video.status) == ("asset-1", VideoStatus.PROCESSING)


@pytest.mark.anyio
async def test_transcode_is_not_resubmitted(async_client: AsyncClient, uploaded, owner_headers, fake_transcoder):
    await async_client.post(_url("v1"), headers=owner_headers)
    r = await async_client.post(_url("v1"), headers=owner_headers)

    assert r.json()["already"] is True
    assert r.json()["asset_id"] == "asset-1"
    assert len(fake_transcoder.created) == 1


@pytest.mark.anyio
async def test_ready_webhook_finds_the_submitted_asset(async_client: AsyncClient, memory_db, uploaded, owner_headers):
    await async_client.post(_url("v1"), headers=owner_headers)

    r = await async_client.post(
        "/api/v1/webhooks/transcoder",
        json={"type": "video.asset.ready", "data": {"id": "asset-1", "playback_ids": [{"id": "pb-1"}]}},
    )

    assert r.json()["video_id"] == "v1"
    assert memory_db.videos["v1"].status is VideoStatus.READY


@pytest.mark.anyio
async def test_transcoder_failure_is_502_and_nothing_persisted(
    async_client: AsyncClient, memory_db, uploaded, owner_headers, fake_transcoder
):
    fake_transcoder.fail_create = True

    r = await async_client.post(_url("v1"), headers=owner_headers)

    assert r.status_code == 502
    assert r.json()["code"] == "UPSTREAM_FAILED"
    video = memory_db.videos["v1"]
    assert (video.transcoder_asset_id, video.status) == (None, VideoStatus.UPLOADING)


@pytest.mark.anyio
async def test_transcode_of_other_org_video_is_404(async_client: AsyncClient, memory_db, owner_headers, fake_transcoder):
    create_org(memory_db, "org-2")
    create_video(memory_db, "v-foreign", org_id="org-2")

    r = await async_client.post(_url("v-foreign"), headers=owner_headers)

    assert r.status_code == 404
    assert fake_transcoder.created == []


@pytest.mark.anyio
async def test_transcode_without_stored_original_is_400(async_client: AsyncClient, memory_db, owner_headers):
    create_org(memory_db)
    create_video(memory_db, "v-empty", key=None, size=None)

    r = await async_client.post(_url("v-empty"), headers=owner_headers)
    assert r.status_code == 400


@pytest.mark.anyio
async def test_transcode_requires_owner(async_client: AsyncClient, uploaded):
    r = await async_client.post(_url("v1"))
    assert r.status_code == 401
