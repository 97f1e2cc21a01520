"""
Account service: registration & login
======================================

Core implementation for **account creation** and **credential login**,
kept separate from the API layer.

Key behaviors
-------------
- **Normalized identity**: email trimmed + lower-cased, username trimmed.
- **Race-safe** duplicate handling: a fast pre-check for the friendly error,
  with the unique constraints (IntegrityError recovery) as the real guard.
- **Neutral errors**: unknown email and wrong password are indistinguishable,
  including the time spent (a dummy hash is verified for unknown emails).
- bcrypt work runs in a worker thread so the event loop keeps serving.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Tuple
import logging

import anyio
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.exceptions import (
    ConflictException,
    InvalidCredentialsException,
    PersistenceException,
)
from app.core.security import create_access_token, get_password_hash, verify_password
from app.db.models import User
from app.schemas.auth import LoginPayload, RegisterPayload

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# 🔧 Helpers
# ─────────────────────────────────────────────────────────────
def _norm_email(email: str) -> str:
    return (email or "").strip().lower()


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    """A throwaway hash with the same bcrypt cost as real accounts."""
    return get_password_hash("timing-equalizer-not-a-password", rounds=rounds)


async def _hash_password(password: str, rounds: int) -> str:
    return await anyio.to_thread.run_sync(get_password_hash, password, rounds)


async def _check_password(password: str, hashed: str) -> bool:
    return await anyio.to_thread.run_sync(verify_password, password, hashed)


# ─────────────────────────────────────────────────────────────
# 📝 Register
# ─────────────────────────────────────────────────────────────
async def register_user(
    db: AsyncSession,
    payload: RegisterPayload,
    settings: Settings,
    *,
    now: Optional[datetime] = None,
) -> Tuple[str, User]:
    """Create an account and issue its first access token.

    Steps
    -----
    1) **Normalize** username/email.
    2) **Check duplicates** quickly (email OR username).
    3) **Hash** the password (bcrypt, `BCRYPT_ROUNDS`).
    4) **Insert**; an IntegrityError from a concurrent registration is the
       same conflict as step 2.
    5) **Issue** the access token.
    """
    username = payload.username.strip()
    email = _norm_email(payload.email)

    existing = (
        await db.execute(
            select(User.id).where(or_(User.email == email, User.username == username)).limit(1)
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictException("User already exists")

    hashed = await _hash_password(payload.password, settings.BCRYPT_ROUNDS)
    user = User(
        username=username,
        email=email,
        hashed_password=hashed,
        created_at=now or datetime.now(timezone.utc),
    )

    try:
        db.add(user)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Registration lost a uniqueness race for username=%s", username)
        raise ConflictException("User already exists")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create user")
        raise PersistenceException("Failed to create user") from e

    await db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return create_access_token(user, settings), user


# ─────────────────────────────────────────────────────────────
# 🔑 Login
# ─────────────────────────────────────────────────────────────
async def login_user(
    db: AsyncSession,
    payload: LoginPayload,
    settings: Settings,
) -> Tuple[str, User]:
    """Verify email + password and issue an access token."""
    email = _norm_email(payload.email)
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if user is None:
        await _check_password(payload.password, _dummy_hash(settings.BCRYPT_ROUNDS))
        raise InvalidCredentialsException()

    if not await _check_password(payload.password, user.hashed_password):
        raise InvalidCredentialsException()

    logger.info("Login succeeded for user id=%s", user.id)
    return create_access_token(user, settings), user


__all__ = ["register_user", "login_user"]
