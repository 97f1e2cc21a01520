from __future__ import annotations

"""
🎞️ VidShare • Video (short-lived uploaded object)
================================================

Metadata row for one object in the bucket. The row is the authoritative
record of the object's lifecycle; S3 user metadata only mirrors it.

Invariants
----------
• `expires_at == created_at + RETENTION_PERIOD`, both written once at upload.
• `storage_key` is globally unique.
• Rows are never updated: owner delete or the expiry reaper removes them.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String

from app.db.base_class import Base, UTCDateTime


class Video(Base):
    """One uploaded video owned by exactly one `User`."""

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    original_name = Column(String(255), nullable=False)
    storage_key = Column(String(255), nullable=False, unique=True)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(127), nullable=False)

    expires_at = Column(UTCDateTime(), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        Index("ix_videos_expires_at", "expires_at"),
        Index("ix_videos_user_created", "user_id", "created_at"),
    )
