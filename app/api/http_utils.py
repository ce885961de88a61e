from __future__ import annotations

"""
ReelShare · HTTP Utilities
==========================

Shared helpers for API routers:

- ID sanitization (path parameters)
- Webhook HMAC verification (timestamped signatures, rotating secrets)
- Safe filename sanitization
- No-store JSON helper

All helpers are side-effect free; validators return the cleaned value or
raise an application exception.
"""

import hashlib
import hmac
import os
import re
import time
from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from app.core.exceptions import ValidationFailed

__all__ = [
    "sanitize_id",
    "sanitize_filename",
    "json_no_store",
    "verify_webhook_signature",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🧩 ID Sanitization
# ─────────────────────────────────────────────────────────────────────────────

_SANITIZE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def sanitize_id(value: Optional[str], *, field: str = "id") -> str:
    """Validate an opaque identifier (UUIDs, cuids, slugs).

    Raises
    ------
    ValidationFailed
        400 when empty or outside ``[A-Za-z0-9_-]{1,128}``.
    """
    v = (value or "").strip()
    if _SANITIZE_ID_RE.match(v):
        return v
    raise ValidationFailed(f"Invalid {field} format")


# ─────────────────────────────────────────────────────────────────────────────
# 🧳 No-store JSON helper (token-scoped responses)
# ─────────────────────────────────────────────────────────────────────────────

def json_no_store(
    payload: Any,
    status_code: int = 200,
    *,
    response: Optional[Response] = None,
) -> JSONResponse:
    """
    Return a JSON response with strict `no-store` caching.

    Everything answered under a share token or owner session goes through
    here so shared proxies never keep a copy.
    """
    def _to_plain(obj: Any) -> Any:
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        if isinstance(obj, (list, tuple)):
            return [_to_plain(x) for x in obj]
        if isinstance(obj, dict):
            return {k: _to_plain(v) for k, v in obj.items()}
        return obj

    resp = JSONResponse(content=_to_plain(payload), status_code=status_code)
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"

    if response is not None:
        for key in ("Location", "Set-Cookie"):
            if key in response.headers:
                resp.headers[key] = response.headers[key]
    return resp


# ─────────────────────────────────────────────────────────────────────────────
# 🔏 Webhook signatures
# ─────────────────────────────────────────────────────────────────────────────

def _parse_signature_header(value: str) -> Dict[str, str]:
    parts: Dict[str, str] = {}
    for item in value.split(","):
        key, sep, val = item.partition("=")
        if sep:
            parts[key.strip()] = val.strip()
    return parts


async def verify_webhook_signature(
    request: Request,
    *,
    secret_env: str,
    header_name: str = "Mux-Signature",
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> bool:
    """Verify a timestamped HMAC signature of the raw request body.

    Header format: ``t=<unix seconds>,v1=<hex HMAC_SHA256(secret, "<t>.<body>")>``.

    Configuration
    -------------
    • ``secret_env``: env var holding one or more shared secrets,
      comma-separated for rotation (any match accepts).
    • ``tolerance_seconds``: maximum age of ``t``; 0 disables the check.

    Behavior
    --------
    • ``secret_env`` unset/empty → True (verification disabled).
    • Header missing, malformed or stale → False.
    """
    raw = os.environ.get(secret_env, "")
    if not raw:
        return True
    secrets = [s.strip() for s in raw.split(",") if s.strip()]

    header = request.headers.get(header_name)
    if not header:
        return False
    parts = _parse_signature_header(header)
    ts, provided = parts.get("t"), parts.get("v1")
    if not ts or not provided or not ts.isdigit():
        return False
    if tolerance_seconds and abs((now if now is not None else time.time()) - int(ts)) > tolerance_seconds:
        return False

    body = await request.body()
    signed = ts.encode("ascii") + b"." + body
    for secret in secrets:
        calc = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        if hmac.compare_digest(calc, provided.lower()):
            return True
    return False


# ─────────────────────────────────────────────────────────────────────────────
# 📦 Safe filename for Content-Disposition
# ─────────────────────────────────────────────────────────────────────────────

def sanitize_filename(name: Optional[str], fallback: str = "download.bin") -> str:
    """Return a safe filename limited to ``[A-Za-z0-9._-]`` and underscores for spaces.

    >>> sanitize_filename("  My File (Final).mp4  ")
    'My_File_Final.mp4'
    >>> sanitize_filename("", fallback="file.bin")
    'file.bin'
    """
    s = (name or "").strip()
    if not s:
        return fallback
    s = re.sub(r"\s+", "_", s)
    s = re.sub(r"[^A-Za-z0-9._-]", "", s)
    return s or fallback
