# app/main.py
from __future__ import annotations

"""
# ReelShare API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the ReelShare backend (owner
galleries, tokenized client shares, review comments, storage accounting).

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**: request id → CORS → gzip.
- Centralized problem+json exception handling (`app.core.exception_handlers`).
- App-scoped state (the ephemeral share store) is created here and injected
  through dependencies, never held in module globals.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (quick DB check).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging
import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse

# Importing sets up Loguru sinks and the stdlib intercept.
from app.core import logger as _logsetup  # noqa: F401
from app.api.v1.routers import router as api_v1_router
from app.core.config import settings
from app.core.exception_handlers import install_exception_handlers
from app.db.session import async_engine, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware
from app.services.share_store import EphemeralShareStore

logger = logging.getLogger("reelshare")

_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)
    try:
        yield
    finally:
        try:
            await async_engine.dispose()
            logger.info("🛑 Database engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


def configure_cors(app: FastAPI) -> None:
    """Strict CORS from `FRONTEND_ORIGINS` (localhost defaults outside production)."""
    origins = settings.frontend_origins_list
    if not origins and not settings.is_production:
        origins = list(_DEV_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", settings.SHARE_TOKEN_HEADER],
        expose_headers=["Location", "X-Request-ID"],
        max_age=3600,
    )


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """Build and configure the FastAPI app instance."""
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    app.state.share_store = EphemeralShareStore(settings.SHARE_STORE_TTL_SECONDS)

    # ── Middlewares (last added runs first) ─────────────────────────────────
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    configure_cors(app)
    app.add_middleware(RequestIDMiddleware)

    install_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe; no external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz() -> JSONResponse:
        db_ok = await db_healthcheck()
        return JSONResponse(
            {"ready": db_ok, "checks": {"db": db_ok}},
            status_code=200 if db_ok else 503,
        )

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse({
            "name": settings.PROJECT_NAME,
            "docs": app.docs_url or "",
            "version": settings.VERSION,
        })

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
