# tests/test_core/test_media_clients.py

import httpx
import pytest
from botocore.exceptions import ClientError

from app.core.config import settings
from app.services.transcoding import TranscoderClient, TranscoderError
from app.utils.aws import S3Client, S3StorageError


# ─────────────────────────────────────────────────────────────
# S3Client (boto3 client injected)
# ─────────────────────────────────────────────────────────────

class _FakeBoto:
    def __init__(self, delete_error=None):
        self.presign_calls = []
        self.deleted = []
        self.delete_error = delete_error

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn, HttpMethod=None):
        self.presign_calls.append((ClientMethod, Params, ExpiresIn))
        return f"https://signed.example.com/{Params['Key']}"

    def delete_object(self, Bucket, Key):
        if self.delete_error:
            raise self.delete_error
        self.deleted.append((Bucket, Key))


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "DeleteObject")


def test_presigned_get_normalizes_key_and_passes_disposition():
    boto = _FakeBoto()
    s3 = S3Client("originals", client=boto)

    url = s3.presigned_get("//orgs//org-1/v1.mp4", expires_in=30, response_content_disposition="attachment")

    assert url == "https://signed.example.com/orgs/org-1/v1.mp4"
    method, params, ttl = boto.presign_calls[0]
    assert method == "get_object"
    assert params == {"Bucket": "originals", "Key": "orgs/org-1/v1.mp4", "ResponseContentDisposition": "attachment"}
    assert ttl == 30


def test_presigned_put_carries_content_type_and_metadata():
    boto = _FakeBoto()
    s3 = S3Client("originals", client=boto)

    s3.presigned_put("orgs/org-1/videos/v1/original/a.mov", content_type="video/quicktime", metadata={"video_id": "v1"})

    method, params, ttl = boto.presign_calls[0]
    assert method == "put_object"
    assert params["ContentType"] == "video/quicktime"
    assert params["Metadata"] == {"video_id": "v1"}
    assert ttl == settings.UPLOAD_URL_TTL_SECONDS


@pytest.mark.parametrize("key", ["", "../secrets", "orgs/<script>"])
def test_bad_keys_are_rejected(key):
    with pytest.raises(S3StorageError):
        S3Client("originals", client=_FakeBoto()).presigned_get(key)


def test_delete_missing_object_counts_as_deleted():
    S3Client("originals", client=_FakeBoto(delete_error=_client_error("NoSuchKey"))).delete("orgs/a.mp4")


def test_delete_failure_is_typed():
    with pytest.raises(S3StorageError):
        S3Client("originals", client=_FakeBoto(delete_error=_client_error("AccessDenied"))).delete("orgs/a.mp4")


def test_missing_bucket_is_a_configuration_error():
    with pytest.raises(S3StorageError):
        S3Client(None, client=_FakeBoto())


# ─────────────────────────────────────────────────────────────
# TranscoderClient (httpx mock transport)
# ─────────────────────────────────────────────────────────────

def _transcoder(handler):
    return TranscoderClient(
        base_url="https://transcoder.test",
        token_id="id",
        token_secret="secret",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.anyio
async def test_create_asset():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"], seen["path"] = request.method, request.url.path
        seen["auth"] = request.headers.get("authorization", "")
        return httpx.Response(201, json={"data": {"id": "asset-1", "playback_ids": [{"id": "pb-1"}], "status": "preparing"}})

    asset = await _transcoder(handler).create_asset("https://signed.example.com/orgs/a.mp4")

    assert (asset.asset_id, asset.playback_id, asset.status) == ("asset-1", "pb-1", "preparing")
    assert (seen["method"], seen["path"]) == ("POST", "/video/v1/assets")
    assert seen["auth"].startswith("Basic ")


@pytest.mark.anyio
async def test_create_asset_without_id_fails():
    client = _transcoder(lambda request: httpx.Response(201, json={"data": {}}))
    with pytest.raises(TranscoderError):
        await client.create_asset("https://signed.example.com/orgs/a.mp4")


@pytest.mark.anyio
@pytest.mark.parametrize("status_code", [204, 404])
async def test_delete_asset_success_or_already_gone(status_code):
    await _transcoder(lambda request: httpx.Response(status_code)).delete_asset("asset-1")


@pytest.mark.anyio
async def test_delete_asset_failure():
    with pytest.raises(TranscoderError):
        await _transcoder(lambda request: httpx.Response(500)).delete_asset("asset-1")
