from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Installed by `app.main.create_app`. All HTTP errors render as
application/problem+json; `AppException` subclasses add their stable `code`.
"""

import logging
from typing import Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)


def _problem(
    title: str,
    detail: str,
    status_code: int,
    request: Request,
    headers: Optional[Dict[str, str]] = None,
    **extra,
) -> JSONResponse:
    content = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": request.url.path,
    }
    content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        media_type="application/problem+json",
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    title = exc.__class__.__name__
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": title,
            "detail": exc.message,
            "status": exc.status_code,
            "instance": request.url.path,
            **exc.to_problem(),
        },
        media_type="application/problem+json",
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem(title, detail, exc.status_code, request, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _problem(
        "Validation error",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        errors=jsonable_encoder(exc.errors()),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.exception("Unhandled error on %s", request.url.path)
    return _problem(
        "Internal Server Error",
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request,
    )


def install_exception_handlers(app) -> None:
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "install_exception_handlers",
]
