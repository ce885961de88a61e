# app/core/security.py
from __future__ import annotations

"""
ReelShare — Owner session
=========================
- HS256 JWT (python-jose) carrying `{org_id, user_id, role}`
- Accepted from the `rs_owner_session` cookie or an `Authorization: Bearer`
  header (cookie first)
- `get_owner_context` is the FastAPI dependency for owner routes: a valid
  session or 401, never a default identity

Share recipients never hold an owner session; they authenticate per request
with a share token (see `app.services.share_authority`).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import HTTPException, Request, status
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict

from app.core.config import settings
from app.schemas.enums import OwnerRole

logger = logging.getLogger("security")

_TOKEN_TYPE = "owner_session"


class OwnerContext(BaseModel):
    """Authenticated owner: which org they act for and with what role."""

    model_config = ConfigDict(frozen=True)

    org_id: str
    user_id: str
    role: OwnerRole = OwnerRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role is OwnerRole.ADMIN


# ───────────────────────────────────────────────
# 🔏 Issue
# ───────────────────────────────────────────────
def create_owner_session_token(
    *,
    org_id: str,
    user_id: str,
    role: OwnerRole = OwnerRole.USER,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    expires = issued + (expires_delta or timedelta(days=settings.OWNER_SESSION_TTL_DAYS))
    payload: Dict[str, Any] = {
        "sub": user_id,
        "org_id": org_id,
        "role": OwnerRole(role).value,
        "token_type": _TOKEN_TYPE,
        "jti": uuid4().hex,
        "iat": int(issued.timestamp()),
        "exp": int(expires.timestamp()),
    }
    return jwt.encode(
        payload,
        settings.OWNER_SESSION_SECRET.get_secret_value(),
        algorithm=settings.OWNER_SESSION_ALGORITHM,
    )


# ───────────────────────────────────────────────
# 🔓 Verify
# ───────────────────────────────────────────────
def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_owner_session(token: str) -> OwnerContext:
    """Validate a session token; raises 401 on any defect."""
    try:
        payload = jwt.decode(
            token,
            settings.OWNER_SESSION_SECRET.get_secret_value(),
            algorithms=[settings.OWNER_SESSION_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.info("Owner session expired.")
        raise _unauthorized("Session expired")
    except JWTError as e:
        logger.warning("Owner session rejected: %s", e)
        raise _unauthorized("Invalid session")

    if payload.get("token_type") != _TOKEN_TYPE:
        raise _unauthorized("Invalid session")
    org_id, user_id = payload.get("org_id"), payload.get("sub")
    if not org_id or not user_id:
        raise _unauthorized("Invalid session")
    try:
        role = OwnerRole(payload.get("role") or OwnerRole.USER.value)
    except ValueError:
        raise _unauthorized("Invalid session")
    return OwnerContext(org_id=str(org_id), user_id=str(user_id), role=role)


def _session_token(request: Request) -> Optional[str]:
    cookie = (request.cookies.get(settings.OWNER_SESSION_COOKIE) or "").strip()
    if cookie:
        return cookie
    auth = request.headers.get("Authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def get_owner_context(request: Request) -> OwnerContext:
    """Dependency for owner-only routes."""
    token = _session_token(request)
    if not token:
        raise _unauthorized("Not authenticated")
    return decode_owner_session(token)


async def get_optional_owner_context(request: Request) -> Optional[OwnerContext]:
    """Owner session when present and valid, else None (mixed-audience routes)."""
    token = _session_token(request)
    if not token:
        return None
    try:
        return decode_owner_session(token)
    except HTTPException:
        return None


__all__ = [
    "OwnerContext",
    "create_owner_session_token",
    "decode_owner_session",
    "get_owner_context",
    "get_optional_owner_context",
]
