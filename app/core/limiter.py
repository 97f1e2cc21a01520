from __future__ import annotations

"""
VidShare • HTTP Rate Limiting (SlowAPI)
=======================================

Highlights
----------
- **IP keyed** (X-Forwarded-For first hop, then X-Real-IP, then client.host).
- Only the credential endpoints are limited; uploads are bounded by size and
  everything else is cheap.
- **Test/CI friendly**: `RATE_LIMIT_ENABLED=false` turns the decorators into
  pass-throughs at request time; no re-import needed.
- **Backends**: any `limits` storage URI (`memory://`, `redis://…`).

Usage
-----
    from app.core.limiter import install_rate_limiter, rate_limit

    install_rate_limiter(app, settings)

    @router.post("/auth/login")
    @rate_limit(lambda: get_settings().AUTH_RATE_LIMIT)
    async def login(request: Request, ...): ...
"""

import os
from typing import Callable, Union

from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import Settings


# ──────────────────────────────────────────────────────────────
# 🧠 Keying
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    """
    Best-effort client IP:
    1) X-Forwarded-For (first hop)
    2) X-Real-IP
    3) ASGI client.host
    """
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def rate_limit_key(request: Request) -> str:
    return f"ip:{_client_ip(request)}"


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance
# ──────────────────────────────────────────────────────────────
# Decorators bind at import time, so the limiter is created here with the
# env-provided storage; `install_rate_limiter` flips `enabled` per app.
limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://").strip() or "memory://",
)


def rate_limit(limit_value: Union[str, Callable[[], str]]) -> Callable:
    """Apply a per-route limit, e.g. `@rate_limit("10/minute")`."""
    return limiter.limit(limit_value)


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
def install_rate_limiter(app, settings: Settings) -> None:
    """Attach the limiter to `app.state` and register the 429 handler."""
    limiter.enabled = bool(settings.RATE_LIMIT_ENABLED)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info(
        "RateLimiter ready | enabled={} | auth_limit={}",
        limiter.enabled,
        settings.AUTH_RATE_LIMIT,
    )


__all__ = ["limiter", "rate_limit", "rate_limit_key", "install_rate_limiter"]
