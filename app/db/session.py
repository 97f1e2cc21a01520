# app/db/session.py
from __future__ import annotations

"""
VidShare • Database Engines & Session Dependencies

- `build_engine()` / `build_session_maker()` are called once by the app
  lifespan (and by `scripts/reap_expired.py`); the results live on
  `app.state` instead of module globals.
- `get_async_db` is the FastAPI dependency; tests override it with their own
  session like any other dependency.
- SQLite (aiosqlite) for dev/tests, Postgres (asyncpg) in production.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict
import logging

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Pool knobs (ignored for SQLite)
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30
_POOL_SIZE = 10
_MAX_OVERFLOW = 20


# ─────────────────────────────────────────────────────────────
# ⚡ Engine / session factory
# ─────────────────────────────────────────────────────────────

def _enable_sqlite_fks(engine: AsyncEngine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn, _record):  # pragma: no cover - driver callback
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(settings: Settings, **overrides: Any) -> AsyncEngine:
    """Create the async engine for `settings.DATABASE_URL`."""
    url = settings.DATABASE_URL
    kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO, "future": True}
    if not settings.is_sqlite and "poolclass" not in overrides:
        kwargs.update(
            pool_pre_ping=_POOL_PRE_PING,
            pool_recycle=_POOL_RECYCLE,
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            pool_timeout=_POOL_TIMEOUT,
        )
    kwargs.update(overrides)

    engine = create_async_engine(url, **kwargs)
    if settings.is_sqlite:
        _enable_sqlite_fks(engine)
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create missing tables (dev convenience; production uses Alembic)."""
    from app.db.base import Base  # local import registers every model

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ─────────────────────────────────────────────────────────────
# 🔌 FastAPI dependencies
# ─────────────────────────────────────────────────────────────

async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def transactional_async_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session and a transaction; commit on exit, roll back on error."""
    async with session_maker() as session:
        async with session.begin():
            yield session


async def db_healthcheck(engine: AsyncEngine) -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "build_engine",
    "build_session_maker",
    "create_all",
    "get_async_db",
    "transactional_async_session",
    "db_healthcheck",
]
