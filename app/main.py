# app/main.py
from __future__ import annotations

"""
# VidShare API • Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the short-lived video sharing
backend.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Process-scoped objects live on `app.state` (built in the lifespan):
  `settings`, `engine`, `session_maker`, `storage`, `reaper`.
- Safe, explicit **middleware order**:
  1) request id → 2) CORS → 3) gzip → 4) rate limits → 5) strip `Server`.
- Centralized exception handling (`app.core.exception_handlers`).

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (quick DB check).
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from app.core import logger as _logsetup  # noqa: F401

from app.api.routers import build_api_router
from app.core.config import Settings, get_settings
from app.core.exception_handlers import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.limiter import install_rate_limiter
from app.db.session import build_engine, build_session_maker, create_all, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware
from app.security_headers import configure_cors
from app.utils.aws import S3Client, S3StorageError
from app.utils.video_reaper import start_video_reaper_scheduler

logger = logging.getLogger("app.main")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
def _build_storage(settings: Settings) -> Optional[S3Client]:
    try:
        return S3Client.from_settings(settings)
    except S3StorageError:
        if settings.is_production:
            raise
        logger.warning("Object storage not configured; video endpoints will fail until AWS_* is set")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifecycle manager.

    Startup:
        - Build the DB engine + session factory; create tables when
          `DB_AUTO_CREATE` is on.
        - Build the S3 client.
        - Start the expiry reaper scheduler when `REAPER_ENABLED`.

    Shutdown:
        - Stop the scheduler, dispose the engine.
    """
    settings: Settings = app.state.settings
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_maker = build_session_maker(engine)
    if settings.DB_AUTO_CREATE:
        await create_all(engine)
        logger.info("Database tables ensured")

    app.state.storage = _build_storage(settings)

    app.state.reaper = None
    if settings.REAPER_ENABLED and app.state.storage is not None:
        app.state.reaper = start_video_reaper_scheduler(
            app.state.session_maker,
            app.state.storage,
            interval_minutes=settings.REAPER_INTERVAL_MINUTES,
            jitter_seconds=settings.REAPER_JITTER_SECONDS,
        )

    try:
        yield
    finally:
        if app.state.reaper is not None:
            app.state.reaper.shutdown(wait=False)
            logger.info("🛑 Video reaper stopped")
        await engine.dispose()
        logger.info("🛑 Database engine disposed")
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and health/readiness endpoints.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if settings.ENABLE_DOCS else None,
        redoc_url="/redoc" if settings.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if settings.ENABLE_DOCS else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    configure_cors(app, settings)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    install_rate_limiter(app, settings)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(build_api_router(), prefix=settings.API_PREFIX)

    @app.get(f"{settings.API_PREFIX}/test", tags=["meta"])
    async def smoke_test() -> dict[str, str]:
        """Cheap end-to-end check used by the frontend during setup."""
        return {
            "message": "Server is working!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe: `{"ok": True}` when the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz(request: Request) -> JSONResponse:
        """Readiness probe (quick DB check)."""
        engine = getattr(request.app.state, "engine", None)
        db_ok = bool(engine is not None and await db_healthcheck(engine))
        storage_ok = getattr(request.app.state, "storage", None) is not None
        ready = db_ok and storage_ok
        return JSONResponse(
            {"ready": ready, "checks": {"db": db_ok, "storage": storage_ok}},
            status_code=200 if ready else 503,
        )

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse(
            {"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION}
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=get_settings().PORT,
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
