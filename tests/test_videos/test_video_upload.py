# tests/test_videos/test_video_upload.py

import pytest
from httpx import AsyncClient

from app.core.config import settings
from app.repositories.records import VideoRecord
from app.repositories.videos import MemoryVideoRepository
from app.schemas.enums import VideoStatus
from app.services.video_lifecycle import original_key_for
from tests.utils.factory import create_gallery, create_org, create_video

URL = "/api/v1/owner/videos/upload/init"
LIMIT = 10_000


@pytest.fixture()
def quota(memory_db, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_LIMIT_BYTES", LIMIT)
    create_org(memory_db, used=6000)
    create_video(memory_db, "v-old", size=6000)
    create_gallery(memory_db, "g-1", video_ids=["v-old"])
    create_gallery(memory_db, "g-foreign", org_id="org-2")


def _body(**overrides):
    body = {"gallery_id": "g-1", "filename": "Final Cut.mov", "size": 3000, "content_type": "video/quicktime"}
    body.update(overrides)
    return body


@pytest.mark.anyio
async def test_upload_init_reserves_and_signs(async_client: AsyncClient, memory_db, quota, owner_headers, fake_blobs):
    r = await async_client.post(URL, json=_body(title="Spot 30s"), headers=owner_headers)

    assert r.status_code == 201
    data = r.json()
    assert data["reserved_bytes"] == "3000"
    assert data["used_bytes"] == "9000"
    assert data["headers"] == {"content-type": "video/quicktime"}
    assert data["upload_url"].endswith("?sig=put")

    vid = data["video_id"]
    assert data["original_key"] == f"orgs/org-1/videos/{vid}/original/Final_Cut.mov"
    assert fake_blobs.uploads[0]["metadata"] == {"org_id": "org-1", "video_id": vid}

    video = memory_db.videos[vid]
    assert (video.title, video.status, video.original_size) == ("Spot 30s", VideoStatus.UPLOADING, 3000)
    assert memory_db.galleries["g-1"].video_ids == ["v-old", vid]
    assert memory_db.orgs["org-1"].storage_used_bytes == 9000


@pytest.mark.anyio
async def test_upload_up_to_the_exact_limit_is_allowed(async_client: AsyncClient, memory_db, quota, owner_headers):
    r = await async_client.post(URL, json=_body(size=4000), headers=owner_headers)

    assert r.status_code == 201
    assert memory_db.orgs["org-1"].storage_used_bytes == LIMIT


@pytest.mark.anyio
@pytest.mark.parametrize("size", [4001, LIMIT + 1])
async def test_upload_over_the_limit_is_402(async_client: AsyncClient, memory_db, quota, owner_headers, size):
    r = await async_client.post(URL, json=_body(size=size), headers=owner_headers)

    assert r.status_code == 402
    body = r.json()
    assert body["code"] == "STORAGE_LIMIT_EXCEEDED"
    assert body["details"] == {
        "used_bytes": "6000",
        "incoming_bytes": str(size),
        "remaining_bytes": "4000",
        "limit_bytes": str(LIMIT),
    }
    assert memory_db.orgs["org-1"].storage_used_bytes == 6000
    assert memory_db.galleries["g-1"].video_ids == ["v-old"]
    assert set(memory_db.videos) == {"v-old"}


@pytest.mark.anyio
async def test_reconcile_after_reserve_keeps_the_reservation(async_client: AsyncClient, quota, owner_headers):
    await async_client.post(URL, json=_body(), headers=owner_headers)

    r = await async_client.post("/api/v1/owner/storage/reconcile", headers=owner_headers)

    assert r.json()["used_bytes"] == "9000"
    assert r.json()["delta_bytes"] == "0"


@pytest.mark.anyio
@pytest.mark.parametrize("gallery_id", ["g-foreign", "g-missing"])
async def test_upload_into_another_orgs_gallery_is_404(
    async_client: AsyncClient, memory_db, quota, owner_headers, gallery_id
):
    r = await async_client.post(URL, json=_body(gallery_id=gallery_id), headers=owner_headers)

    assert r.status_code == 404
    assert memory_db.orgs["org-1"].storage_used_bytes == 6000


@pytest.mark.anyio
@pytest.mark.parametrize(
    "overrides, status_code",
    [({"filename": "  "}, 400), ({"gallery_id": ""}, 400), ({"size": 0}, 422), ({"size": -5}, 422)],
)
async def test_upload_rejects_bad_input(async_client: AsyncClient, quota, owner_headers, overrides, status_code):
    r = await async_client.post(URL, json=_body(**overrides), headers=owner_headers)
    assert r.status_code == status_code


@pytest.mark.anyio
async def test_signing_failure_reserves_nothing(async_client: AsyncClient, memory_db, quota, owner_headers, fake_blobs):
    fake_blobs.fail_sign = True

    r = await async_client.post(URL, json=_body(), headers=owner_headers)

    assert r.status_code == 502
    assert memory_db.orgs["org-1"].storage_used_bytes == 6000


@pytest.mark.anyio
async def test_upload_requires_owner(async_client: AsyncClient, quota):
    r = await async_client.post(URL, json=_body())
    assert r.status_code == 401


@pytest.mark.anyio
async def test_reservations_stop_at_the_limit(memory_db):
    create_org(memory_db, used=0)
    create_gallery(memory_db, "g-1")
    repo = MemoryVideoRepository(memory_db)

    outcomes = []
    for n in range(5):
        video = VideoRecord(id=f"up-{n}", org_id="org-1", original_key=f"k{n}", original_size=400)
        outcomes.append(await repo.reserve_upload(video, gallery_id="g-1", limit_bytes=1000))

    assert [o.reserved for o in outcomes] == [True, True, False, False, False]
    assert outcomes[-1].used_bytes == 800
    assert memory_db.orgs["org-1"].storage_used_bytes == 800
    assert memory_db.galleries["g-1"].video_ids == ["up-0", "up-1"]


@pytest.mark.parametrize(
    "filename, expected",
    [("clip.mp4", "clip.mp4"), ("../../x.mp4", "x.mp4"), ("...", "original.bin"), ("a b(1).mov", "a_b1.mov")],
)
def test_original_key_is_safe(filename, expected):
    assert original_key_for("org-1", "vid", filename) == f"orgs/org-1/videos/vid/original/{expected}"
