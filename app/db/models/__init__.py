"""
VidShare • ORM model package
============================

Import models from here (`from app.db.models import User, Video`).
"""

from app.db.base_class import Base

from .user import User
from .video import Video

__all__ = ["Base", "User", "Video"]
