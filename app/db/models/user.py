from __future__ import annotations

"""
👤 VidShare • User (accounts & auth)
===================================

Account entity storing login credentials.

Design highlights
-----------------
• **Unique username and email** enforced by the database; the service-level
  pre-check only exists for a friendlier error message.
• Email is stored normalized (trimmed, lower-cased) so the plain unique
  constraint is effectively case-insensitive on every backend.
• Immutable after creation and never deleted; videos reference it by
  `user_id` and are always fetched by query (no back-populated collection).
"""

from sqlalchemy import CheckConstraint, Column, Integer, String

from app.db.base_class import Base, UTCDateTime


class User(Base):
    """Registered account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False, doc="bcrypt hash of the password")

    created_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        CheckConstraint("length(trim(username)) > 0", name="username_not_blank"),
        CheckConstraint("length(trim(email)) > 0", name="email_not_blank"),
    )

    def to_public(self) -> dict:
        """The `{id, username, email}` shape returned by auth endpoints."""
        return {"id": self.id, "username": self.username, "email": self.email}
