# app/utils/aws.py
from __future__ import annotations

"""
🧊 ReelShare • Object Storage Utilities
=======================================

Thin boto3 wrapper over any S3-compatible store (AWS S3, Cloudflare R2, MinIO)
holding uploaded originals.

Used by:
- Uploads (signed PUT handed to the browser)
- Downloads (short-lived signed GET, then HTTP redirect)
- Transcoding (signed GET the transcoder fetches the original from)
- Video deletion (remove the stored original)

🎯 Goals
--------
- SigV4 presigned GET / PUT with short TTLs
- Explicit timeouts + bounded retries
- Defensive key normalization (no leading slash, no `..`)
- Zero secret leakage in logs

The service never builds provider URLs itself; everything goes through here.
"""

from typing import Any, Dict, Optional
import logging
import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from pydantic import SecretStr

from app.core.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (network, auth, policy, etc.)."""


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key validation
# ─────────────────────────────────────────────────────────────────────────────

_KEY_ALLOWED_RE = re.compile(r"[A-Za-z0-9._\-/+=@() ]+")


def _normalize_key(key: str) -> str:
    """
    Normalize and validate object keys.

    1) Coerce to str, strip whitespace
    2) Remove leading '/'
    3) Collapse '//' runs
    4) Reject path traversal ('..') and disallowed characters
    """
    k = str(key or "").strip().lstrip("/")
    k = re.sub(r"/{2,}", "/", k)
    if not k:
        raise S3StorageError("Invalid storage key: empty")
    if ".." in k:
        raise S3StorageError("Invalid storage key: path traversal detected")
    if not _KEY_ALLOWED_RE.fullmatch(k):
        raise S3StorageError("Invalid storage key: contains forbidden characters")
    return k


def _secret_value(v: Optional[SecretStr | str]) -> Optional[str]:
    if v is None:
        return None
    return v.get_secret_value() if isinstance(v, SecretStr) else str(v)


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    Object storage client with safe defaults.

    Parameters
    ----------
    bucket : str | None
        Bucket holding originals. Defaults to `settings.S3_BUCKET_NAME`.
    region_name : str | None
        Defaults to `settings.S3_REGION` (`auto` for R2).
    endpoint_url : str | None
        S3-compatible endpoint. Defaults to `settings.S3_ENDPOINT_URL`.

    Credentials come from `S3_ACCESS_KEY_ID` / `S3_SECRET_ACCESS_KEY` when both
    are set, otherwise from the standard AWS credential chain.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket or settings.S3_BUCKET_NAME
        if not self.bucket:
            raise S3StorageError("S3_BUCKET_NAME not configured")

        self.region = region_name or settings.S3_REGION
        endpoint_cfg = endpoint_url or settings.S3_ENDPOINT_URL

        if client is not None:
            self.client = client
        else:
            cfg = BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": 5, "mode": "standard"},
                connect_timeout=3,
                read_timeout=10,
                s3={"addressing_style": "path" if endpoint_cfg else "virtual"},
            )
            client_kwargs: Dict[str, Any] = {"config": cfg}
            if self.region:
                client_kwargs["region_name"] = self.region
            if endpoint_cfg:
                client_kwargs["endpoint_url"] = endpoint_cfg

            ak = settings.S3_ACCESS_KEY_ID
            sk = _secret_value(settings.S3_SECRET_ACCESS_KEY)
            if ak and sk:
                client_kwargs["aws_access_key_id"] = ak
                client_kwargs["aws_secret_access_key"] = sk

            try:
                self.client = boto3.client("s3", **client_kwargs)
            except Exception as e:  # pragma: no cover
                raise S3StorageError(f"Failed to create S3 client: {e}") from e

        self._repr = f"S3Client(bucket={self.bucket}, region={self.region}, endpoint={'yes' if endpoint_cfg else 'no'})"

    # ────────────────────────────────────────────────────────────────────────
    # 🔐 Signed URLs
    # ────────────────────────────────────────────────────────────────────────

    def presigned_get(
        self,
        key: str,
        *,
        expires_in: Optional[int] = None,
        response_content_disposition: Optional[str] = None,
    ) -> str:
        """
        Short-lived **presigned GET** URL for an object.

        `expires_in` defaults to `settings.SIGNED_URL_TTL_SECONDS`.
        """
        k = _normalize_key(key)
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": k}
        if response_content_disposition:
            params["ResponseContentDisposition"] = response_content_disposition
        ttl = int(expires_in or settings.SIGNED_URL_TTL_SECONDS)

        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=ttl,
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned GET: {e}") from e

    def presigned_put(
        self,
        key: str,
        *,
        content_type: str,
        expires_in: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Generate a **presigned PUT** URL for a direct browser upload.

        Parameters
        ----------
        key : str
            Object key (will be normalized; no leading `/`, no `..`).
        content_type : str
            MIME type the client **must** send as `Content-Type`.
        expires_in : int | None
            URL TTL in seconds; defaults to `settings.UPLOAD_URL_TTL_SECONDS`.
        metadata : dict[str, str] | None
            User metadata stored with the object (org / video ids).

        Raises
        ------
        S3StorageError
            On signing failure or invalid key.
        """
        k = _normalize_key(key)
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": k,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = dict(metadata)
        ttl = int(expires_in or settings.UPLOAD_URL_TTL_SECONDS)

        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params=params,
                ExpiresIn=ttl,
                HttpMethod="PUT",
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned PUT: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # 🗑️ Delete
    # ────────────────────────────────────────────────────────────────────────

    def delete(self, key: str) -> None:
        """
        Delete an object. A missing object counts as deleted.

        Raises
        ------
        S3StorageError
            On any other failure, so callers can abort before touching
            their own records.
        """
        k = _normalize_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=k)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in {"404", "NoSuchKey", "NotFound"}:
                return
            raise S3StorageError(f"Failed to delete object: {code}") from e
        except Exception as e:
            raise S3StorageError(f"Failed to delete object: {e}") from e

    def __repr__(self) -> str:  # pragma: no cover
        return self._repr


__all__ = ["S3Client", "S3StorageError"]
