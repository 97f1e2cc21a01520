from __future__ import annotations

"""
VidShare · HTTP Utilities
=========================

Shared helpers for API routers and services:

- Safe filename sanitization (storage keys)
- Public base URL resolution for absolute links on the share page
"""

import re
from typing import Optional

from fastapi import Request

from app.core.config import Settings


def sanitize_filename(
    name: Optional[str],
    fallback: str = "download.bin",
    *,
    max_length: Optional[int] = None,
) -> str:
    """Return a safe filename limited to ``[A-Za-z0-9._-]`` and underscores for spaces.

    Steps
    -----
    - Strip leading/trailing whitespace
    - Replace any run of whitespace with a single underscore
    - Remove any characters outside ``A-Za-z0-9._-``
    - Collapse runs of dots (object keys never contain ``..``)
    - Truncate to ``max_length`` when given
    - If empty, fall back to ``fallback``

    Examples
    --------
    >>> sanitize_filename("  My File (Final).mp4  ")
    'My_File_Final.mp4'
    >>> sanitize_filename("", fallback="file.bin")
    'file.bin'
    """
    s = (name or "").strip()
    if not s:
        return fallback
    s = re.sub(r"\s+", "_", s)
    s = re.sub(r"[^A-Za-z0-9._-]", "", s)
    s = re.sub(r"\.{2,}", ".", s)
    if max_length is not None:
        s = s[:max_length]
    if not s.strip("._-"):
        return fallback
    return s


def public_base_url(request: Request, settings: Settings) -> str:
    """Origin used for absolute links (`PUBLIC_BASE_URL` or the request's own)."""
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL
    return str(request.base_url).rstrip("/")


__all__ = ["sanitize_filename", "public_base_url"]
