"""
Development settings for DerivDesk.

This configuration is optimized for local development and the test suite,
with debugging enabled and in-process caches.
"""

import logging.config
import os
import sys

from .base import *  # noqa: F403

# ================================================================================
# DEVELOPMENT SETTINGS
# ================================================================================

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-k2v!8q#derivdesk-dev-only-7m@x0r$3c^p9t+w1z&l4n"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DEBUG", "True").lower() in ("true", "1", "yes", "on")

# Hosts (configurable via env)
_default_hosts = "127.0.0.1,localhost,testserver"
_allowed_hosts_raw = os.environ.get("ALLOWED_HOSTS")
if _allowed_hosts_raw and _allowed_hosts_raw.strip():
    ALLOWED_HOSTS = [h.strip() for h in _allowed_hosts_raw.split(",") if h.strip()]
else:
    ALLOWED_HOSTS = [h.strip() for h in _default_hosts.split(",") if h.strip()]

# ================================================================================
# DATABASE CONFIGURATION (DEVELOPMENT)
# ================================================================================

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
    }
}

# ================================================================================
# CACHE CONFIGURATION (DEVELOPMENT)
# ================================================================================

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "derivdesk-dev",
        "TIMEOUT": 300,
    }
}

# ================================================================================
# DEVELOPMENT LOGGING
# ================================================================================

from services.core.logging import get_development_logging  # noqa: E402

LOGGING = get_development_logging()
logging.config.dictConfig(LOGGING)

# Print settings info only when running the actual server process, not the reloader
if "runserver" in sys.argv and os.environ.get("RUN_MAIN") == "true":
    print("Development settings loaded")
    print(f"Database: SQLite at {DATABASES['default']['NAME']}")
    print(f"Debug mode: {DEBUG}")
    print(f"Polygon API key configured: {bool(POLYGON_API_KEY)}")  # noqa: F405
    print(f"Allowed hosts: {', '.join(ALLOWED_HOSTS)}")
