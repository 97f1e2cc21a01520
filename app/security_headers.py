# app/security_headers.py
from __future__ import annotations

"""
# VidShare • Cache Hardening & CORS

## What you get
- **CORS installer**: strict allow-list from `FRONTEND_ORIGINS` (localhost
  defaults in dev).
- **Cache helper**: `set_sensitive_cache()` for token-bearing responses.

## Quick start
    from app.security_headers import configure_cors, set_sensitive_cache

    configure_cors(app, settings)

    @router.post("/auth/login")
    async def login(response: Response):
        set_sensitive_cache(response)

The share page and thumbnail are embedded by third-party crawlers and chat
clients, so no CSP / frame-ancestors policy is applied here.
"""

from typing import Iterable, Optional

from fastapi import Response
from starlette.middleware.cors import CORSMiddleware

from app.core.config import Settings

_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def set_sensitive_cache(response: Response, *, seconds: int = 0) -> None:
    """
    Mark a response as sensitive for caching (idempotent).

    `seconds > 0` enables a short **private** cache and adds a conservative
    `Vary: Authorization` to prevent proxy leakage.
    """
    if seconds <= 0:
        response.headers.setdefault("Cache-Control", "no-store")
        response.headers.setdefault("Pragma", "no-cache")
        response.headers.setdefault("Expires", "0")
        return

    response.headers.setdefault("Cache-Control", f"private, max-age={seconds}")
    vary = response.headers.get("Vary")
    if vary:
        existing = {v.strip() for v in vary.split(",") if v.strip()}
        response.headers["Vary"] = ", ".join(sorted(existing | {"Authorization"}))
    else:
        response.headers["Vary"] = "Authorization"


def configure_cors(
    app,
    settings: Settings,
    *,
    allow_credentials: bool = True,
    allow_methods: Optional[Iterable[str]] = None,
    allow_headers: Optional[Iterable[str]] = None,
) -> None:
    """Install strict CORS based on `settings.FRONTEND_ORIGINS`."""
    allow_methods = allow_methods or ["GET", "HEAD", "OPTIONS", "POST", "DELETE"]
    allow_headers = allow_headers or ["Authorization", "Content-Type", "X-Request-ID"]

    origins = settings.frontend_origins_list
    if not origins and not settings.is_production:
        origins = list(_DEV_ORIGINS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=list(allow_methods),
        allow_headers=list(allow_headers),
        expose_headers=["Retry-After", "X-Request-ID"],
        max_age=3600,
    )


__all__ = ["set_sensitive_cache", "configure_cors"]
