# app/utils/aws.py
from __future__ import annotations

"""
🧊 VidShare • Object storage client
===================================

One private bucket on any S3-compatible service (Backblaze B2, AWS S3,
MinIO). Callers:

- ingest: `put_bytes` with `x-amz-meta-*` audit metadata
- listing + share page: `presigned_get` (SigV4, TTL chosen by caller)
- owner delete + reaper: `delete`, where "already gone" is success
- readiness/debugging: `head`

boto3 is blocking; async code calls these through
`anyio.to_thread.run_sync`. Presigned URLs and credentials are never logged.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Error codes S3, B2 and MinIO use for a missing object
_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_SAFE_KEY_RE = re.compile(r"[A-Za-z0-9._\-/+=@() ]+")


class S3StorageError(RuntimeError):
    """Any storage failure: bad key, credentials, network or service error."""


def _normalize_key(key: str) -> str:
    """Trim, drop the leading slash, collapse `//`; refuse `..` and odd characters."""
    k = re.sub(r"/{2,}", "/", str(key or "").strip().lstrip("/"))
    if not k:
        raise S3StorageError("Empty storage key")
    if ".." in k:
        raise S3StorageError("Storage key must not contain '..'")
    if _SAFE_KEY_RE.fullmatch(k) is None:
        raise S3StorageError("Storage key contains unsupported characters")
    return k


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code") or "")
    return ""


class S3Client:
    """
    Bucket-scoped wrapper around a boto3 S3 client.

    `client` may be passed in directly (tests attach a `botocore.stub.Stubber`);
    otherwise one is built with SigV4, 5 standard retries and short timeouts.
    Without explicit keys boto3's default credential chain applies.
    """

    def __init__(
        self,
        bucket: Optional[str],
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        addressing_style: str = "auto",
        client: Any = None,
    ) -> None:
        if not bucket:
            raise S3StorageError("AWS_BUCKET_NAME not configured")
        self.bucket = bucket
        self.region = region_name
        self.endpoint_url = endpoint_url
        self.client = client or self._build_client(
            region_name=region_name,
            endpoint_url=endpoint_url,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            addressing_style=addressing_style,
        )

    @staticmethod
    def _build_client(
        *,
        region_name: Optional[str],
        endpoint_url: Optional[str],
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        addressing_style: str,
    ) -> Any:
        kwargs: Dict[str, Any] = {
            "config": BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": 5, "mode": "standard"},
                connect_timeout=3,
                read_timeout=60,
                s3={"addressing_style": addressing_style},
            ),
        }
        if region_name:
            kwargs["region_name"] = region_name
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if access_key_id and secret_access_key:
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
        try:
            return boto3.client("s3", **kwargs)
        except (BotoCoreError, ValueError) as e:
            raise S3StorageError(f"Could not create S3 client: {e}") from e

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "S3Client":
        """Build the process-wide client from the `AWS_*` settings."""
        secret = settings.AWS_SECRET_ACCESS_KEY
        kwargs: Dict[str, Any] = {
            "region_name": settings.AWS_REGION,
            "endpoint_url": settings.AWS_S3_ENDPOINT_URL,
            "access_key_id": settings.AWS_ACCESS_KEY_ID,
            "secret_access_key": secret.get_secret_value() if secret else None,
            "addressing_style": settings.AWS_S3_ADDRESSING_STYLE,
        }
        kwargs.update(overrides)
        return cls(settings.AWS_BUCKET_NAME, **kwargs)

    # ────────────────────────────────────────────────────────────────────────
    # 🔐 Read access
    # ────────────────────────────────────────────────────────────────────────
    def presigned_get(self, key: str, *, expires_in: int = 300) -> str:
        """Time-limited GET URL for `key`. Signing is local; no request is made."""
        k = _normalize_key(key)
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": k},
                ExpiresIn=int(expires_in),
            )
        except (BotoCoreError, ClientError) as e:
            raise S3StorageError(f"Could not sign GET for key={k}: {type(e).__name__}") from e

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """Object metadata, or None when the object does not exist."""
        k = _normalize_key(key)
        try:
            return dict(self.client.head_object(Bucket=self.bucket, Key=k) or {})
        except (BotoCoreError, ClientError) as e:
            if _error_code(e) in _MISSING_CODES:
                return None
            raise S3StorageError(f"HEAD failed for key={k}: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # ✍️ Writes
    # ────────────────────────────────────────────────────────────────────────
    def put_bytes(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        """
        Store `data` under `key` in one request.

        `metadata` values must be ASCII (S3 user metadata travels as HTTP
        headers); callers percent-encode anything else.
        """
        k = _normalize_key(key)
        args: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": k,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            args["Metadata"] = {str(name): str(value) for name, value in metadata.items()}
        if cache_control:
            args["CacheControl"] = cache_control
        try:
            self.client.put_object(**args)
        except (BotoCoreError, ClientError) as e:
            raise S3StorageError(f"PUT failed for key={k}: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Remove `key`. True when the object is gone afterwards (including when
        it never existed); False on any other failure, which is logged.
        """
        k = _normalize_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=k)
        except (BotoCoreError, ClientError) as e:
            if _error_code(e) in _MISSING_CODES:
                return True
            logger.warning("DELETE failed for key=%s: %s", k, e)
            return False
        return True

    def __repr__(self) -> str:  # pragma: no cover
        return f"S3Client(bucket={self.bucket!r}, region={self.region!r}, custom_endpoint={bool(self.endpoint_url)})"


__all__ = ["S3Client", "S3StorageError"]
