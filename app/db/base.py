# app/db/base.py
"""
VidShare • SQLAlchemy Base registry
===================================

Import all ORM models so their tables are registered on `Base.metadata`.
Used by Alembic autogeneration, `DB_AUTO_CREATE`, and the test fixtures.

Tip: Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base

from app.db.models.user import User
from app.db.models.video import Video

__all__ = [
    "Base",
    "User",
    "Video",
]
