# app/core/exceptions.py
from __future__ import annotations

"""
VidShare • Application Exceptions
=================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and render one JSON error shape from
`app.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `details`, `extra`.
- Domain exceptions inherit from it and pin their status code and a
  client-safe default message.
- Storage/persistence failures never carry internal detail to the client;
  the cause is chained (`raise ... from e`) and logged server-side.

Usage
-----
    raise NotFoundException("Video not found")
    raise ConflictException("User already exists", details={"field": "email"})
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "ValidationException",
    "ConflictException",
    "InvalidCredentialsException",
    "UnauthenticatedException",
    "NotFoundException",
    "GoneException",
    "StorageException",
    "PersistenceException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (serialized as `message` and `detail`).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id (handlers fill it from request state).
    details : dict | list | str | None
        Machine-readable details (field names, limits, ids).
    extra : dict | None
        Additional non-sensitive metadata to surface to clients.
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    default_status: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        status_code = int(status_code or self.default_status)
        message = message or self.default_message
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def to_problem(self, *, fallback_request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the canonical JSON error body."""
        body: Dict[str, Any] = {
            "error": True,
            "message": self.message,
            "detail": self.message,
            "code": self.code,
            "request_id": self.request_id or fallback_request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 🧾 Input & identity
# ──────────────────────────────────────────────────────────────
class ValidationException(AppException):
    """Bad input shape, type or size; raised before any remote side effect."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictException(AppException):
    """Duplicate identity (username or email already registered)."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class InvalidCredentialsException(AppException):
    """Login failure; unknown email and wrong password look identical."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid credentials"


class UnauthenticatedException(AppException):
    """Missing, malformed, expired or badly signed bearer token."""

    default_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"

    def __init__(self, message: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


# ──────────────────────────────────────────────────────────────
# 🎞️ Resource state
# ──────────────────────────────────────────────────────────────
class NotFoundException(AppException):
    default_status = status.HTTP_404_NOT_FOUND
    default_message = "Video not found"


class GoneException(AppException):
    default_status = status.HTTP_410_GONE
    default_message = "Video has expired"


# ──────────────────────────────────────────────────────────────
# 💥 Infrastructure
# ──────────────────────────────────────────────────────────────
class StorageException(AppException):
    """Remote object-store failure (message is generic by construction)."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage operation failed"


class PersistenceException(AppException):
    """Metadata-store failure (message is generic by construction)."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database operation failed"
