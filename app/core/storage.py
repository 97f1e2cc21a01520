from __future__ import annotations

"""
VidShare • Object Layout & Lifecycle
====================================

Single private bucket, flat key space:

    s3://{bucket}/{epoch_millis}-{rand8hex}-{sanitized_original_name}

Every object carries S3 user metadata for auditing only:

    original-name, user-id, expires-at (ISO-8601, UTC)

The `videos` row is authoritative; the metadata is never read back.

Lifecycle
---------
- A video lives for exactly `RETENTION_PERIOD` after upload.
- Clients never get bucket access; they get presigned GETs:
  `STREAM_URL_TTL_SECONDS` for in-app playback and the share page,
  `SHARE_URL_TTL_SECONDS` for links pasted into chats.
- The share page reloads itself `SHARE_REFRESH_MARGIN_SECONDS` before its
  stream URL expires.
"""

from datetime import timedelta

RETENTION_PERIOD = timedelta(days=5)

MAX_UPLOAD_BYTES = 200 * 1024 * 1024
UPLOAD_READ_CHUNK_BYTES = 1024 * 1024

STREAM_URL_TTL_SECONDS = 60 * 60
SHARE_URL_TTL_SECONDS = 24 * 60 * 60
SHARE_REFRESH_MARGIN_SECONDS = 100

ALLOWED_MIME_PREFIX = "video/"
STORAGE_KEY_NAME_MAX = 120
STORAGE_KEY_FALLBACK_NAME = "video.bin"

# `videos.id` is a 32-bit INTEGER; larger path ids can never match a row
MAX_VIDEO_ID = 2**31 - 1

# S3 user-metadata keys (x-amz-meta-*)
META_ORIGINAL_NAME = "original-name"
META_USER_ID = "user-id"
META_EXPIRES_AT = "expires-at"
