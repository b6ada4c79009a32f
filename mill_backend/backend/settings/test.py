# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS (manage.py test + pytest-django)

- SQLite in a temp file, regardless of DATABASE_URL in .env (threaded ledger
  tests need connections that share one database)
- BEGIN IMMEDIATE so concurrent writers queue on the lock instead of failing
- Fast password hashing
- Throttling off so API tests never trip rate limits
- Low-stock notifications stay ON (they are part of the tested behavior)
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": str(Path(tempfile.gettempdir()) / "mill_backend_test.sqlite3")},
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

INVENTORY_AUDIT_EPSILON = "0.01"
INVENTORY_LOW_STOCK_NOTIFICATIONS = True

# Keep test output readable; ledger INFO lines are asserted with assertLogs where needed.
LOGGING["loggers"] = {  # noqa: F405
    name: {**cfg, "level": "WARNING"}
    for name, cfg in LOGGING["loggers"].items()  # noqa: F405
}
