# app/middleware/request_id.py
from __future__ import annotations

"""
# ReelShare — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a
  valid UUIDv4; otherwise generates one.
- Stores it on `request.state.request_id` and echoes it on the response.
- Binds `request_id` into the **loguru** context for the whole request, so
  every log line (including intercepted stdlib loggers) carries it.

## Usage
    app.add_middleware(RequestIDMiddleware)
"""

import os
import uuid
from typing import Optional

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

HEADER_NAME = os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID")
TRUST_CLIENT_IDS = os.getenv("REQUEST_ID_TRUST_CLIENT_IDS", "true").lower() == "true"


def _valid_uuid4(value: Optional[str]) -> Optional[str]:
    candidate = (value or "").strip()
    if not candidate or len(candidate) > 64:
        return None
    try:
        parsed = uuid.UUID(candidate)
    except ValueError:
        return None
    return str(parsed) if parsed.version == 4 else None


class RequestIDMiddleware:
    """Per-request correlation id; client ids are format-checked to keep logs clean."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.encode("latin-1")

        async def _send_wrapper(message):
            if message.get("type") == "http.response.start":
                raw = message.get("headers", [])
                message["headers"] = [(k, v) for (k, v) in raw if k.lower() != name_bytes.lower()]
                message["headers"].append((name_bytes, req_id.encode("latin-1")))
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send_wrapper)

    def _choose_request_id(self, headers: Headers) -> str:
        if TRUST_CLIENT_IDS:
            incoming = headers.get(self.header_name) or headers.get("X-Correlation-ID")
            valid = _valid_uuid4(incoming)
            if valid:
                return valid
        return str(uuid.uuid4())


__all__ = ["RequestIDMiddleware"]
