# app/core/config.py
from __future__ import annotations

"""
# VidShare • Centralized Configuration (Pydantic v2)

One strongly-typed, environment-driven `Settings` object.

## Goals
- Safe defaults for local/dev (SQLite + in-memory rate limits).
- Explicit secrets where production needs them (JWT secret, bucket creds).
- Storage is any S3-compatible endpoint (Backblaze B2, AWS S3, MinIO).

## Usage
    from app.core.config import get_settings
    settings = get_settings()

The app factory stores the instance on `app.state.settings`; request handlers
read it from there instead of importing a module-level singleton.
"""

import logging
from functools import lru_cache
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
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


def _derive_async_url(url: str) -> str:
    """Upgrade sync Postgres/SQLite URLs to their async driver variants."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - `JWT_SECRET_KEY` has no default; the app refuses to start without it.
        - bcrypt cost never drops below 10.

    Storage:
        - Credentials are optional; when absent boto3 falls back to its
          standard credential chain (env, profile, instance role).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "VidShare API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True
    PORT: int = 5000
    PUBLIC_BASE_URL: Optional[str] = None  # share page links fall back to the request URL

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(7, ge=1, le=30)
    BCRYPT_ROUNDS: int = Field(12, ge=10, le=16)

    # ── Database ──────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./vidshare.db"
    DB_AUTO_CREATE: bool = True
    DB_ECHO: bool = False

    # ── Object storage (S3-compatible) ────────────────────────
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_REGION: str = "us-west-002"
    AWS_BUCKET_NAME: Optional[str] = None
    AWS_S3_ENDPOINT_URL: Optional[str] = None  # e.g. https://s3.us-west-002.backblazeb2.com
    AWS_S3_ADDRESSING_STYLE: Literal["auto", "virtual", "path"] = "auto"

    # ── Expiry reaper ─────────────────────────────────────────
    REAPER_ENABLED: bool = True
    REAPER_INTERVAL_MINUTES: int = Field(60, ge=1, le=24 * 60)
    REAPER_JITTER_SECONDS: int = Field(15, ge=0, le=600)

    # ── CORS & rate limiting ──────────────────────────────────
    FRONTEND_ORIGINS: Optional[str] = "http://localhost:3000"  # CSV
    RATE_LIMIT_ENABLED: bool = True
    RATELIMIT_STORAGE_URI: str = "memory://"
    AUTH_RATE_LIMIT: str = "10/minute"

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, v: str) -> str:
        return _derive_async_url(str(v or "").strip())

    @field_validator("API_PREFIX", mode="before")
    @classmethod
    def _normalize_prefix(cls, v: str | None) -> str:
        s = (v or "").strip().rstrip("/")
        if s and not s.startswith("/"):
            s = "/" + s
        return s

    @field_validator("FRONTEND_ORIGINS", mode="before")
    @classmethod
    def _normalize_frontend_csv(cls, v):
        return None if v is None else ",".join(_split_csv(str(v)))

    @field_validator("PUBLIC_BASE_URL", mode="before")
    @classmethod
    def _normalize_public_base(cls, v: str | None) -> str | None:
        s = (v or "").strip().rstrip("/")
        return s or None

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def frontend_origins_list(self) -> List[str]:
        return _split_csv(self.FRONTEND_ORIGINS)


@lru_cache
def get_settings() -> Settings:
    """Build settings once per process."""
    return Settings()


__all__ = ["Settings", "get_settings"]
