from __future__ import annotations

"""
One-shot expired video sweep, for cron or any external scheduler.

Builds settings, engine and S3 client exactly like the API lifespan, runs a
single sweep and exits. Exit code 1 means at least one expired video could
not be removed (it will be retried by the next run).

Run:
  python scripts/reap_expired.py
"""

import asyncio
import logging
import sys

from app.core.config import get_settings
from app.core.logger import setup_logging
from app.db.session import build_engine, build_session_maker
from app.utils.aws import S3Client
from app.utils.video_reaper import sweep_expired_videos

logger = logging.getLogger("reap-expired")


async def run_once() -> int:
    settings = get_settings()
    engine = build_engine(settings)
    try:
        result = await sweep_expired_videos(build_session_maker(engine), S3Client.from_settings(settings))
    finally:
        await engine.dispose()
    logger.info("Sweep finished: scanned=%s deleted=%s failed=%s", result.scanned, result.deleted, result.failed)
    return 1 if result.failed else 0


def main() -> None:
    setup_logging()
    sys.exit(asyncio.run(run_once()))


if __name__ == "__main__":
    main()
