"""
Public video views (no auth)
============================

GET /videos/share/{id}      HTML page with a player + Open Graph/Twitter tags
GET /videos/thumbnail/{id}  1200x630 SVG preview image

Both are fetched by chat/social crawlers; ids are sequential and public by
design of the share links.
"""

import logging
from datetime import datetime
from pathlib import Path as FsPath

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import public_base_url
from app.core.config import Settings
from app.core.dependencies import get_now, get_settings_dep, get_storage
from app.core.storage import MAX_VIDEO_ID
from app.db.session import get_async_db
from app.services.video_directory_service import get_shareable, get_thumbnail_state
from app.utils.aws import S3Client

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(FsPath(__file__).resolve().parents[2] / "templates"))

router = APIRouter(prefix="/videos", tags=["Public"])

SVG_MEDIA_TYPE = "image/svg+xml"
THUMBNAIL_TITLE_MAX = 60
_THUMBNAIL_TEMPLATES = {
    "fallback": "thumbnail_fallback.svg",
    "expired": "thumbnail_expired.svg",
    "ready": "thumbnail.svg",
}


def _links(request: Request, settings: Settings, video_id: int) -> tuple[str, str]:
    base = f"{public_base_url(request, settings)}{settings.API_PREFIX}/videos"
    return f"{base}/share/{video_id}", f"{base}/thumbnail/{video_id}"


@router.get("/share/{video_id}", response_class=HTMLResponse, summary="Shareable player page")
async def share_page(
    request: Request,
    video_id: int = Path(..., ge=1, le=MAX_VIDEO_ID),
    db: AsyncSession = Depends(get_async_db),
    storage: S3Client = Depends(get_storage),
    settings: Settings = Depends(get_settings_dep),
    now: datetime = Depends(get_now),
):
    share = await get_shareable(db, storage, video_id=video_id, now=now)
    page_url, thumbnail_url = _links(request, settings, video_id)
    response = templates.TemplateResponse(
        request,
        "share.html",
        {
            "share": share,
            "page_url": page_url,
            "thumbnail_url": thumbnail_url,
            "expires_label": share.expires_at.strftime("%Y-%m-%d"),
        },
    )
    # the embedded stream URL is only valid for an hour
    response.headers["Cache-Control"] = "no-store"
    return response


@router.get("/thumbnail/{video_id}", summary="Preview image (SVG)")
async def thumbnail(
    request: Request,
    video_id: str = Path(...),
    db: AsyncSession = Depends(get_async_db),
    now: datetime = Depends(get_now),
) -> Response:
    # any id, even a malformed one, gets an image
    digits = video_id.lstrip("0")
    numeric_id = int(digits) if digits.isascii() and digits.isdigit() and len(digits) <= 10 else 0
    if 1 <= numeric_id <= MAX_VIDEO_ID:
        state, video = await get_thumbnail_state(db, video_id=numeric_id, now=now)
    else:
        state, video = "fallback", None
    title = ""
    if video is not None:
        title = video.original_name
        if len(title) > THUMBNAIL_TITLE_MAX:
            title = title[: THUMBNAIL_TITLE_MAX - 1] + "…"
    return templates.TemplateResponse(
        request,
        _THUMBNAIL_TEMPLATES[state],
        {"title": title},
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": "public, max-age=300"},
    )


__all__ = ["router", "templates"]
