from __future__ import annotations

import os

# ---- Safe defaults so importing config.settings
# won't reach for real AppEEARS credentials during mypy ----
os.environ.setdefault("DJANGO_SECRET_KEY", "mypy-only-not-for-prod")
os.environ.setdefault("APPEEARS_USER", "")
os.environ.setdefault("APPEEARS_PASS", "")
os.environ.setdefault("APPEEARS_LOGIN_ON_STARTUP", "false")

from .settings import *  # noqa: F401,F403,E402

# Hard overrides for the mypy environment:
DEBUG = False
USE_TZ = True
APPEEARS_LOGIN_ON_STARTUP = False
