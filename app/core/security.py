# app/core/security.py
from __future__ import annotations

"""
VidShare • Authentication & Security Helpers
============================================
- bcrypt password hashing through passlib (`BCRYPT_ROUNDS`, never below 10)
- Access token creation (iat/nbf/exp/jti + identity claims)
- FastAPI dependency that turns a Bearer token into a `TokenIdentity`

Decoding lives in `app.core.jwt`; this module never re-implements it.
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import Depends, Request
from jose import jwt
from passlib.context import CryptContext

from app.core.config import Settings
from app.core.exceptions import UnauthenticatedException
from app.core.jwt import ACCESS_TOKEN_TYPE, decode_token, get_bearer_token
from app.schemas.auth import TokenIdentity

logger = logging.getLogger("security")

MIN_BCRYPT_ROUNDS = 10


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
@lru_cache(maxsize=8)
def _pwd_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=max(MIN_BCRYPT_ROUNDS, int(rounds)),
    )


def get_password_hash(password: str, rounds: int = 12) -> str:
    """Return a salted hash using Passlib's bcrypt."""
    return _pwd_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify of a plaintext password against a stored hash."""
    try:
        return _pwd_context(MIN_BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except ValueError:
        # malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ───────────────────────────────────────────────
# 🪪 JWT: Access Token Generation
# ───────────────────────────────────────────────
def create_access_token(
    user: Any,
    settings: Settings,
    *,
    now: Optional[datetime] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed **access token** carrying the account identity."""
    now = now or datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))

    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "id": int(user.id),
        "username": user.username,
        "email": user.email,
        "iat": now,
        "nbf": now,
        "exp": expire,
        "jti": str(uuid4()),
        "token_type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET_KEY.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


# ───────────────────────────────────────────────
# 👤 Dependency: Current Identity
# ───────────────────────────────────────────────
def identity_from_payload(payload: Dict[str, Any]) -> TokenIdentity:
    """Build a `TokenIdentity` from verified claims; 401 if they are malformed."""
    try:
        return TokenIdentity(
            id=int(payload["sub"]),
            username=str(payload.get("username") or ""),
            email=str(payload.get("email") or ""),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Token carries a malformed subject")
        raise UnauthenticatedException("Invalid token")


def _settings_from_request(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_identity(
    request: Request,
    settings: Settings = Depends(_settings_from_request),
) -> TokenIdentity:
    """Authenticate the caller from the presented **access** token.

    Steps:
    1) Parse the Bearer header and decode/validate the JWT (`app.core.jwt`).
    2) Rebuild the identity from claims; no DB round-trip.
    3) Record `request.state.user_id` for logging.
    """
    token = get_bearer_token(request)
    payload = decode_token(token, settings)
    identity = identity_from_payload(payload)

    request.state.user_id = identity.id
    logger.debug("[Auth] Authenticated user_id=%s", identity.id)
    return identity


__all__ = [
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "identity_from_payload",
    "get_current_identity",
]
