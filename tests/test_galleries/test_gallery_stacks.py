# tests/test_galleries/test_gallery_stacks.py

import json

import pytest
from httpx import AsyncClient

from app.schemas.enums import VideoStatus
from tests.utils.factory import create_gallery, create_video

BASE = "/api/v1/owner/galleries"


@pytest.fixture()
def gallery(memory_db):
    for vid in ("v1", "v2", "v3", "v4"):
        create_video(memory_db, vid)
    create_video(memory_db, "v-processing", status=VideoStatus.PROCESSING)
    create_video(memory_db, "v-outside")
    return create_gallery(memory_db, "g-1", video_ids=["v1", "v2", "v3", "v4", "v-processing"])


def _stored(memory_db):
    return json.loads(memory_db.galleries["g-1"].stacks_json)


# ─────────────────────────────────────────────────────────────
# update-stacks
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_update_stacks_sanitizes_and_persists(async_client: AsyncClient, memory_db, gallery, owner_headers):
    r = await async_client.post(
        f"{BASE}/update-stacks",
        json={"gallery_id": "g-1", "stacks": {"v1": ["v2", "v1", "v2", " v3 "], "v4": ["v4"]}},
        headers=owner_headers,
    )

    assert r.status_code == 200
    data = r.json()
    assert data["stacks"] == {"v1": ["v1", "v2", "v3"]}
    assert data["visible_ids"] == ["v1", "v4", "v-processing"]
    assert _stored(memory_db) == {"v1": ["v1", "v2", "v3"]}


@pytest.mark.anyio
async def test_update_stacks_reorders_the_grid(async_client: AsyncClient, memory_db, gallery, owner_headers):
    r = await async_client.post(
        f"{BASE}/update-stacks",
        json={"gallery_id": "g-1", "stacks": {}, "ordered_ids": ["v4", "v2"]},
        headers=owner_headers,
    )

    assert r.status_code == 200
    assert memory_db.galleries["g-1"].video_ids == ["v4", "v2", "v1", "v3", "v-processing"]
    assert _stored(memory_db) == {}


@pytest.mark.anyio
async def test_update_stacks_first_claim_wins(async_client: AsyncClient, memory_db, gallery, owner_headers):
    r = await async_client.post(
        f"{BASE}/update-stacks",
        json={"gallery_id": "g-1", "stacks": {"v1": ["v1", "v2"], "v3": ["v3", "v2", "v4"]}},
        headers=owner_headers,
    )
    assert r.json()["stacks"] == {"v1": ["v1", "v2"], "v3": ["v3", "v4"]}


@pytest.mark.anyio
@pytest.mark.parametrize(
    "payload",
    [
        {"stacks": ["v1", "v2"]},
        {"stacks": {"v-outside": ["v-outside", "v1"]}},
        {"stacks": {"v1": ["v1", "v-outside"]}},
        {"stacks": {"v1": "v2"}},
        {"stacks": {}, "ordered_ids": ["v1", "v-outside"]},
        {"gallery_id": "", "stacks": {}},
    ],
)
async def test_update_stacks_rejects_bad_input(async_client: AsyncClient, memory_db, gallery, owner_headers, payload):
    body = {"gallery_id": "g-1", **payload}
    r = await async_client.post(f"{BASE}/update-stacks", json=body, headers=owner_headers)

    assert r.status_code == 400
    assert memory_db.galleries["g-1"].stacks_json is None


@pytest.mark.anyio
async def test_gallery_of_other_org_is_not_found(async_client: AsyncClient, gallery, owner_headers_for):
    r = await async_client.post(
        f"{BASE}/update-stacks",
        json={"gallery_id": "g-1", "stacks": {}},
        headers=owner_headers_for("org-2"),
    )
    assert r.status_code == 404


@pytest.mark.anyio
async def test_gallery_routes_require_owner(async_client: AsyncClient, gallery):
    r = await async_client.post(f"{BASE}/update-stacks", json={"gallery_id": "g-1", "stacks": {}})
    assert r.status_code == 401


# ─────────────────────────────────────────────────────────────
# stack-versions / unstack
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_stack_versions(async_client: AsyncClient, memory_db, gallery, owner_headers):
    r = await async_client.post(
        f"{BASE}/stack-versions",
        json={"gallery_id": "g-1", "ordered_ids": ["v3", "v1", "v2"]},
        headers=owner_headers,
    )

    assert r.status_code == 200
    data = r.json()
    assert data["parent_id"] == "v3"
    assert data["stack_ids"] == ["v3", "v1", "v2"]
    assert data["visible_ids"] == ["v3", "v4", "v-processing"]
    assert _stored(memory_db) == {"v3": ["v3", "v1", "v2"]}


@pytest.mark.anyio
async def test_stack_versions_replaces_overlapping_stack(async_client: AsyncClient, memory_db, gallery, owner_headers):
    memory_db.galleries["g-1"].stacks_json = json.dumps({"v1": ["v1", "v2"]})

    r = await async_client.post(
        f"{BASE}/stack-versions",
        json={"gallery_id": "g-1", "ordered_ids": ["v4", "v2"]},
        headers=owner_headers,
    )

    assert r.status_code == 200
    assert _stored(memory_db) == {"v4": ["v4", "v2"]}


@pytest.mark.anyio
@pytest.mark.parametrize("ordered", [["v1"], ["v1", "v-processing"], []])
async def test_stack_versions_needs_two_ready_videos(async_client: AsyncClient, gallery, owner_headers, ordered):
    r = await async_client.post(
        f"{BASE}/stack-versions",
        json={"gallery_id": "g-1", "ordered_ids": ordered},
        headers=owner_headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Pick at least two ready videos to stack"


@pytest.mark.anyio
async def test_stack_versions_outside_gallery(async_client: AsyncClient, gallery, owner_headers):
    r = await async_client.post(
        f"{BASE}/stack-versions",
        json={"gallery_id": "g-1", "ordered_ids": ["v1", "v-outside"]},
        headers=owner_headers,
    )
    assert r.status_code == 400


@pytest.mark.anyio
async def test_unstack(async_client: AsyncClient, memory_db, gallery, owner_headers):
    memory_db.galleries["g-1"].stacks_json = json.dumps({"v1": ["v1", "v2"], "v3": ["v3", "v4"]})

    r = await async_client.post(f"{BASE}/unstack", json={"gallery_id": "g-1", "parent_id": "v1"}, headers=owner_headers)

    assert r.status_code == 200
    assert r.json()["stack_ids"] == ["v1", "v2"]
    assert r.json()["visible_ids"] == ["v1", "v2", "v3", "v-processing"]
    assert _stored(memory_db) == {"v3": ["v3", "v4"]}


@pytest.mark.anyio
async def test_unstack_of_a_child_or_loose_video(async_client: AsyncClient, memory_db, gallery, owner_headers):
    memory_db.galleries["g-1"].stacks_json = json.dumps({"v1": ["v1", "v2"]})

    for parent in ("v2", "v4"):
        r = await async_client.post(f"{BASE}/unstack", json={"gallery_id": "g-1", "parent_id": parent}, headers=owner_headers)
        assert r.status_code == 400
