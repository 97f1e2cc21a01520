from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, Optional
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, get_password_hash
from app.db.models import User, Video
from tests.test_settings import settings

DEFAULT_PASSWORD = "correct-horse-battery"


def bearer(user: User) -> Dict[str, str]:
    """Authorization header carrying a fresh access token for `user`."""
    return {"Authorization": f"Bearer {create_access_token(user, settings)}"}


# ──────────────────────────────────────────────────────────────
# 🧪 Factory: persisted user
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Insert a user with a real bcrypt hash (minimum cost)."""

    async def _create(
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
    ) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            username=username or f"user_{suffix}",
            email=(email or f"user_{suffix}@example.com").lower(),
            hashed_password=get_password_hash(password, rounds=10),
            created_at=datetime.now(timezone.utc),
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


# ──────────────────────────────────────────────────────────────
# 🎞️ Factory: persisted video row (no object written)
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def create_video(db_session: AsyncSession) -> Callable[..., Awaitable[Video]]:
    """Insert a `videos` row directly; `created_at` defaults to now."""

    async def _create(
        owner: User,
        *,
        original_name: str = "clip.mp4",
        created_at: Optional[datetime] = None,
        mime_type: str = "video/mp4",
        size: int = 1024,
    ) -> Video:
        created = created_at or datetime.now(timezone.utc)
        video = Video(
            user_id=owner.id,
            original_name=original_name,
            storage_key=f"{int(created.timestamp() * 1000)}-{uuid4().hex[:8]}-clip.mp4",
            file_size=size,
            mime_type=mime_type,
            created_at=created,
            expires_at=created + timedelta(days=5),
        )
        db_session.add(video)
        await db_session.commit()
        await db_session.refresh(video)
        return video

    return _create


@pytest.fixture
async def user(create_user) -> User:
    return await create_user()


@pytest.fixture
def auth_headers(user: User) -> Dict[str, str]:
    return bearer(user)


__all__ = [
    "DEFAULT_PASSWORD",
    "bearer",
    "create_user",
    "create_video",
    "user",
    "auth_headers",
]
