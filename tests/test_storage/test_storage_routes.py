# tests/test_storage/test_storage_routes.py

import pytest
from httpx import AsyncClient

from tests.utils.factory import create_gallery, create_org, create_video


@pytest.fixture()
def library(memory_db):
    create_org(memory_db, used=10)
    create_org(memory_db, "org-2", used=0)
    create_video(memory_db, "v1", size=2 ** 53 + 1)
    create_video(memory_db, "v2", size=1, archived=True)
    create_video(memory_db, "v-theirs", size=500, org_id="org-2")
    create_gallery(memory_db, "g-1", video_ids=["v1", "v2"])


@pytest.mark.anyio
async def test_usage_is_rendered_as_strings(async_client: AsyncClient, library, owner_headers):
    r = await async_client.get("/api/v1/owner/storage/usage", headers=owner_headers)

    assert r.status_code == 200
    assert r.json()["used_bytes"] == str(2 ** 53 + 2)
    assert isinstance(r.json()["limit_bytes"], str)


@pytest.mark.anyio
async def test_reconcile_route(async_client: AsyncClient, memory_db, library, owner_headers):
    r = await async_client.post("/api/v1/owner/storage/reconcile", headers=owner_headers)

    assert r.status_code == 200
    assert r.json() == {
        "ok": True,
        "before_bytes": "10",
        "used_bytes": str(2 ** 53 + 2),
        "delta_bytes": str(2 ** 53 + 2 - 10),
    }
    assert memory_db.orgs["org-2"].storage_used_bytes == 0

    again = await async_client.post("/api/v1/owner/storage/reconcile", headers=owner_headers)
    assert again.json()["delta_bytes"] == "0"


@pytest.mark.anyio
async def test_breakdown_route(async_client: AsyncClient, library, owner_headers):
    r = await async_client.get("/api/v1/owner/storage/breakdown", headers=owner_headers)

    assert r.status_code == 200
    data = r.json()
    assert data["archived_bytes"] == "1"
    assert data["counter_used_bytes"] == "10"
    assert data["top_galleries"][0]["bytes"] == str(2 ** 53 + 2)
    assert [v["id"] for v in data["largest_videos"]] == ["v1", "v2"]


@pytest.mark.anyio
@pytest.mark.parametrize("method, path", [("GET", "/usage"), ("POST", "/reconcile"), ("GET", "/breakdown")])
async def test_storage_routes_require_owner(async_client: AsyncClient, method, path):
    r = await async_client.request(method, f"/api/v1/owner/storage{path}")
    assert r.status_code == 401
