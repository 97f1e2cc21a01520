# app/core/jwt.py
from __future__ import annotations

"""
VidShare • JWT helpers
======================
- `decode_token` verifies signature and `exp`/`nbf`, then requires `sub`,
  `jti` and `token_type == "access"`.
- Case-insensitive Bearer token extraction.

Notes
-----
- Token *creation* lives in `app.core.security`.
- Tokens are stateless: no revocation lane, they live until `exp`.
- Every failure surfaces as `UnauthenticatedException` (401 +
  `WWW-Authenticate: Bearer`); the reason is logged, never returned.
"""

from typing import Any, Dict, Optional, Sequence
import logging

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import Settings
from app.core.exceptions import UnauthenticatedException

logger = logging.getLogger("auth")

ACCESS_TOKEN_TYPE = "access"


# ─────────────────────────────────────────────────────────────
# 🔓 Decode JWT Token
# ─────────────────────────────────────────────────────────────
def decode_token(
    token: str,
    settings: Settings,
    *,
    expected_types: Optional[Sequence[str]] = (ACCESS_TOKEN_TYPE,),
) -> Dict[str, Any]:
    """Decode and validate a JWT.

    Security checks
    ---------------
    1) Verify signature and standard claims (exp/nbf/iat)
    2) Require `sub` and `jti`
    3) Require `token_type` membership (access only by default)

    Raises
    ------
    UnauthenticatedException
      - for invalid/expired tokens or type mismatch
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise UnauthenticatedException("Token has expired")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise UnauthenticatedException("Invalid token")

    # Required subject
    if not payload.get("sub"):
        logger.warning("Missing sub in token payload.")
        raise UnauthenticatedException("Invalid token")

    # Required JTI
    if not payload.get("jti"):
        logger.warning("Missing JTI in token.")
        raise UnauthenticatedException("Invalid token")

    if expected_types is not None:
        token_type = payload.get("token_type")
        if token_type not in set(expected_types):
            logger.warning(
                "Token type mismatch: got %r, expected one of %s", token_type, list(expected_types)
            )
            raise UnauthenticatedException("Invalid token")

    return payload


# ─────────────────────────────────────────────────────────────
# 📥 Extract Bearer Token from Authorization Header
# ─────────────────────────────────────────────────────────────
def get_bearer_token(request: Request) -> str:
    """Extract a Bearer token from the `Authorization` header (case-insensitive)."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        logger.info("Missing Authorization header.")
        raise UnauthenticatedException("Access token required")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Malformed Authorization header.")
        raise UnauthenticatedException("Invalid Authorization scheme")

    token = parts[1].strip()
    if not token:
        raise UnauthenticatedException("Access token required")

    return token


__all__ = ["ACCESS_TOKEN_TYPE", "decode_token", "get_bearer_token"]
