# app/middleware/request_id.py
from __future__ import annotations

"""
# VidShare • Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` (or `X-Correlation-ID`) when it is
  a short, log-safe token; otherwise generates a UUIDv4.
- Injects it into `request.state.request_id` and the response header.
- Binds `request_id` into the **loguru** context for the whole request, so
  every line logged by handlers, services and the S3 wrapper carries it.
"""

import re
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "X-Request-ID"
_ALIASES = ("X-Correlation-ID",)

# Letters, digits and a few separators only: keeps log lines injection-free.
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{8,128}$")


def choose_request_id(headers: Headers, header_name: str = HEADER_NAME) -> str:
    """Return the caller's id when it is safe to log, else a fresh UUIDv4."""
    for name in (header_name, *_ALIASES):
        incoming = (headers.get(name) or "").strip()
        if incoming and _SAFE_ID_RE.fullmatch(incoming):
            return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware:
    """Per-request correlation id for HTTP scopes; other scopes pass through."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name
        self._header_bytes = header_name.lower().encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = choose_request_id(Headers(scope=scope), self.header_name)
        scope.setdefault("state", {})["request_id"] = req_id

        async def _send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (k, v) for (k, v) in message.get("headers", []) if k.lower() != self._header_bytes
                ]
                headers.append((self.header_name.encode("latin-1"), req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send_wrapper)


def get_request_id(request) -> str:
    """Current request id from `request.state` ("" if the middleware is absent)."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "choose_request_id", "get_request_id"]
