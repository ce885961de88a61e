# tests/test_videos/test_video_delete.py

import pytest
from httpx import AsyncClient

from tests.utils.factory import create_comment, create_gallery, create_org, create_share, create_video


@pytest.fixture()
def stored_video(memory_db):
    create_org(memory_db, used=5000)
    video = create_video(memory_db, "v1", size=3000, asset_id="asset-1", playback_id="pb-1")
    create_video(memory_db, "v2", size=2000)
    create_gallery(memory_db, "g-1", video_ids=["v1", "v2"])
    create_share(memory_db, "tok-single", video_id="v1")
    create_share(memory_db, "tok-gallery", allowed=["v1", "v2"])
    create_comment(memory_db, "c1", video_id="v1")
    create_comment(memory_db, "c2", video_id="v2")
    return video


@pytest.mark.anyio
async def test_delete_cascades_and_releases_storage(
    async_client: AsyncClient, memory_db, stored_video, owner_headers, fake_blobs, fake_transcoder
):
    r = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)

    assert r.status_code == 200
    assert r.json() == {"ok": True, "video_id": "v1"}

    assert fake_transcoder.deleted == ["asset-1"]
    assert fake_blobs.deleted == ["orgs/org-1/v1.mp4"]

    assert memory_db.videos["v1"].deleted_at is not None
    assert memory_db.galleries["g-1"].video_ids == ["v2"]
    assert list(memory_db.comments) == ["c2"]
    assert {s.token for s in memory_db.share_links.values()} == {"tok-gallery"}
    assert memory_db.orgs["org-1"].storage_used_bytes == 2000


@pytest.mark.anyio
async def test_deleted_video_is_gone_for_share_recipients(async_client: AsyncClient, stored_video, owner_headers):
    await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)

    payload = await async_client.get("/api/v1/shares/payload", params={"token": "tok-gallery"})
    assert [v["id"] for v in payload.json()["videos"]] == ["v2"]

    single = await async_client.post("/api/v1/shares/validate", json={"token": "tok-single"})
    assert single.status_code == 404


@pytest.mark.anyio
async def test_counter_decrement_is_clamped_at_zero(async_client: AsyncClient, memory_db, owner_headers):
    create_org(memory_db, used=100)
    create_video(memory_db, "v1", size=3000)

    r = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)

    assert r.status_code == 200
    assert memory_db.orgs["org-1"].storage_used_bytes == 0


@pytest.mark.anyio
async def test_video_without_stored_media_skips_external_calls(
    async_client: AsyncClient, memory_db, owner_headers, fake_blobs, fake_transcoder
):
    create_org(memory_db, used=0)
    create_video(memory_db, "v1", key=None, size=None)

    r = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)

    assert r.status_code == 200
    assert fake_blobs.deleted == [] and fake_transcoder.deleted == []


@pytest.mark.anyio
@pytest.mark.parametrize("failing", ["transcoder", "blobs"])
async def test_upstream_failure_leaves_database_untouched(
    async_client: AsyncClient, memory_db, stored_video, owner_headers, fake_blobs, fake_transcoder, failing
):
    if failing == "transcoder":
        fake_transcoder.fail_delete = True
    else:
        fake_blobs.fail_delete = True

    r = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)

    assert r.status_code == 502
    assert r.json()["code"] == "UPSTREAM_FAILED"
    assert memory_db.videos["v1"].deleted_at is None
    assert memory_db.galleries["g-1"].video_ids == ["v1", "v2"]
    assert "c1" in memory_db.comments
    assert memory_db.orgs["org-1"].storage_used_bytes == 5000


@pytest.mark.anyio
async def test_delete_missing_or_foreign_video(async_client: AsyncClient, memory_db, owner_headers):
    create_org(memory_db)
    create_video(memory_db, "v-theirs", org_id="org-2")

    missing = await async_client.post("/api/v1/owner/videos/nope/delete", headers=owner_headers)
    foreign = await async_client.post("/api/v1/owner/videos/v-theirs/delete", headers=owner_headers)

    assert missing.status_code == 404
    assert foreign.status_code == 404
    assert memory_db.videos["v-theirs"].deleted_at is None


@pytest.mark.anyio
async def test_delete_twice_is_not_found(async_client: AsyncClient, stored_video, owner_headers):
    first = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)
    second = await async_client.post("/api/v1/owner/videos/v1/delete", headers=owner_headers)
    assert (first.status_code, second.status_code) == (200, 404)


@pytest.mark.anyio
async def test_delete_requires_owner(async_client: AsyncClient, stored_video):
    r = await async_client.post("/api/v1/owner/videos/v1/delete")
    assert r.status_code == 401
