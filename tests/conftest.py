# tests/conftest.py
"""
Global test bootstrap
- Points the app at a throwaway SQLite file (aiosqlite)
- Disables SlowAPI rate limiting and the in-process reaper scheduler
- Pins a test JWT secret and the minimum bcrypt cost (fast hashing)
"""

from __future__ import annotations

import os
import tempfile
import warnings

from sqlalchemy.exc import SAWarning

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env
#   NOTE: These are set BEFORE importing the app/fixtures so they take effect.
# ──────────────────────────────────────────────────────────────────────────────
_TMP_DIR = tempfile.mkdtemp(prefix="vidshare-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-pytest-only"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["ENV"] = "development"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["REAPER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATELIMIT_STORAGE_URI"] = "memory://"
os.environ["AWS_BUCKET_NAME"] = "test-bucket"
os.environ["AWS_REGION"] = "us-west-002"
os.environ.pop("PUBLIC_BASE_URL", None)

warnings.filterwarnings("ignore", category=SAWarning)

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures (db, storage, app, users)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *          # noqa: F401,F403,E402
from tests.fixtures.storage import *     # noqa: F401,F403,E402
from tests.fixtures.app import *         # noqa: F401,F403,E402
from tests.fixtures.users import *       # noqa: F401,F403,E402
