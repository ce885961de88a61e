# app/core/config.py
from __future__ import annotations

"""
# ReelShare — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Optional external systems (object storage, transcoder) so imports never crash in dev.
- Bounded TTLs for owner sessions, signed URLs and the share payload cache.

## Usage
    from app.core.config import settings
"""

import logging
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_url_like(v: str | None, *, require_scheme: bool = True) -> str:
    """Normalize to a string URL without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if require_scheme and not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - Owner sessions are HS* JWTs signed with `OWNER_SESSION_SECRET`.
        - Share tokens are opaque; nothing here weakens their lookup.

    Storage:
        - Any S3-compatible endpoint (AWS, R2, MinIO) via `S3_ENDPOINT_URL`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "ReelShare API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Owner sessions ────────────────────────────────────────
    OWNER_SESSION_SECRET: SecretStr = Field(...)
    OWNER_SESSION_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    OWNER_SESSION_TTL_DAYS: int = Field(7, ge=1, le=90)
    OWNER_SESSION_COOKIE: str = "rs_owner_session"

    # ── Share links ───────────────────────────────────────────
    SHARE_TOKEN_COOKIE: str = "rs_share_token"
    SHARE_TOKEN_HEADER: str = "X-Share-Token"
    SHARE_TOKEN_BYTES: int = Field(24, ge=16, le=64)
    SHARE_STORE_TTL_SECONDS: int = Field(300, ge=5, le=24 * 60 * 60)

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "reelshare"

    # ── CORS ──────────────────────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = None  # CSV

    # ── Object storage (optional in dev) ──────────────────────
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    S3_REGION: str = "auto"
    S3_BUCKET_NAME: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None  # e.g. https://<account>.r2.cloudflarestorage.com
    SIGNED_URL_TTL_SECONDS: int = Field(60, ge=10, le=7 * 24 * 60 * 60)
    UPLOAD_URL_TTL_SECONDS: int = Field(900, ge=60, le=7 * 24 * 60 * 60)

    # ── Storage quota ─────────────────────────────────────────
    STORAGE_LIMIT_BYTES: int = Field(100 * 1024 * 1024 * 1024, ge=0)

    # ── Transcoder (optional) ─────────────────────────────────
    TRANSCODER_BASE_URL: str = "https://api.mux.com"
    TRANSCODER_TOKEN_ID: Optional[str] = None
    TRANSCODER_TOKEN_SECRET: Optional[SecretStr] = None
    TRANSCODER_TIMEOUT_SECONDS: float = Field(10.0, gt=0, le=120)
    TRANSCODER_THUMBNAIL_BASE: str = "https://image.mux.com"
    TRANSCODER_WEBHOOK_SECRET_ENV: str = "TRANSCODER_WEBHOOK_SECRETS"

    PUBLIC_BASE_URL: AnyHttpUrl = "http://localhost:8000"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("S3_ENDPOINT_URL", mode="before")
    @classmethod
    def _normalize_endpoint(cls, v: str | None) -> str | None:
        s = (v or "").strip()
        if not s:
            return None
        return _normalize_url_like(s)

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN."""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)

    @property
    def public_base_url_str(self) -> str:
        """`PUBLIC_BASE_URL` as a plain string (normalized by Pydantic)."""
        return str(self.PUBLIC_BASE_URL).rstrip("/")


# Singleton instance
settings = Settings()
