"""
Auth API: register, login, current identity
============================================

POST /auth/register · POST /auth/login · GET /auth/me

Security & Hardening
--------------------
- **No-store** cache headers on token-bearing responses.
- **Per-route rate limit** (SlowAPI, `AUTH_RATE_LIMIT`) on the two
  credential endpoints.
- Neutral errors live in the service layer: unknown email and wrong password
  produce the same 400.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.dependencies import get_current_identity, get_settings_dep
from app.core.limiter import rate_limit
from app.db.session import get_async_db
from app.schemas.auth import AuthResponse, LoginPayload, MeResponse, RegisterPayload, TokenIdentity, UserOut
from app.security_headers import set_sensitive_cache
from app.services.auth.account_service import login_user, register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_limit() -> str:
    return get_settings().AUTH_RATE_LIMIT


# ──────────────────────────────────────────────────────
# 👤 Register
# ──────────────────────────────────────────────────────
@router.post("/register", response_model=AuthResponse, summary="Create an account and issue a token")
@rate_limit(_auth_limit)
async def register(
    payload: RegisterPayload,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dep),
) -> AuthResponse:
    set_sensitive_cache(response)
    token, user = await register_user(db, payload, settings)
    return AuthResponse(token=token, user=UserOut.model_validate(user))


# ──────────────────────────────────────────────────────
# 🔑 Login
# ──────────────────────────────────────────────────────
@router.post("/login", response_model=AuthResponse, summary="Exchange email + password for a token")
@rate_limit(_auth_limit)
async def login(
    payload: LoginPayload,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dep),
) -> AuthResponse:
    set_sensitive_cache(response)
    token, user = await login_user(db, payload, settings)
    return AuthResponse(token=token, user=UserOut.model_validate(user))


# ──────────────────────────────────────────────────────
# 🪪 Current identity
# ──────────────────────────────────────────────────────
@router.get("/me", response_model=MeResponse, summary="Identity carried by the bearer token")
async def me(
    response: Response,
    identity: TokenIdentity = Depends(get_current_identity),
) -> MeResponse:
    set_sensitive_cache(response)
    return MeResponse(user=UserOut(id=identity.id, username=identity.username, email=identity.email))


__all__ = ["router"]
