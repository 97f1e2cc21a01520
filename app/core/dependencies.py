# app/core/dependencies.py
from __future__ import annotations

"""
Request dependencies • VidShare
===============================

Accessors for the process-scoped objects the lifespan puts on `app.state`,
plus the request clock. Tests replace any of them through
`app.dependency_overrides`.

Duplication Policy
------------------
Token decoding and Bearer parsing live in `app.core.jwt`; identity building
lives in `app.core.security`. This module only *re-exports* them.
"""

from datetime import datetime, timezone

from fastapi import Request

from app.core.config import Settings
from app.core.exceptions import StorageException
from app.core.security import get_current_identity
from app.utils.aws import S3Client

__all__ = [
    "get_settings_dep",
    "get_storage",
    "get_now",
    "get_current_identity",
]


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> S3Client:
    """The shared S3 client built at startup; 500 when storage is unconfigured."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise StorageException("Storage is not configured")
    return storage


def get_now() -> datetime:
    """Current UTC time; one reading per request."""
    return datetime.now(timezone.utc)
