"""
Production settings for DerivDesk.

This configuration is optimized for production deployment with security,
performance, and reliability considerations. All secrets come from the
environment.
"""

import os

from django.core.exceptions import ImproperlyConfigured

from services.core.logging import get_production_logging

from .base import *  # noqa: F403

# ================================================================================
# PRODUCTION SECURITY SETTINGS
# ================================================================================

SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    raise ImproperlyConfigured("SECRET_KEY environment variable is required in production")

DEBUG = False
ALLOWED_HOSTS = [
    h.strip() for h in os.environ.get("ALLOWED_HOSTS", "").split(",") if h.strip()
]

CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

# Proxy SSL header (required for reverse proxy setups)
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

SECURE_SSL_REDIRECT = os.environ.get("SECURE_SSL_REDIRECT", "True").lower() == "true"
SECURE_HSTS_SECONDS = int(os.environ.get("SECURE_HSTS_SECONDS", "31536000"))  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# ================================================================================
# CONTAINER CONFIGURATION
# ================================================================================

CONTAINER_MODE = os.environ.get("CONTAINER_MODE", "false").lower() == "true"

# ================================================================================
# DATABASE CONFIGURATION
# ================================================================================

# Nothing is persisted; the database only backs Django's contrib apps
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DB_PATH", str(BASE_DIR / "db.sqlite3")),  # noqa: F405
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "derivdesk",
        "TIMEOUT": 300,
    }
}

STATIC_ROOT = BASE_DIR / "staticfiles"  # noqa: F405

# ================================================================================
# LOGGING CONFIGURATION (PRODUCTION)
# ================================================================================

LOGGING = get_production_logging()

if CONTAINER_MODE:
    # Container mode: Log to stdout/stderr only
    LOGGING["handlers"]["console"]["level"] = "INFO"
    LOGGING["handlers"]["console"]["formatter"] = "structured"
    for logger_config in LOGGING["loggers"].values():
        logger_config["handlers"] = ["console"]
    LOGGING["root"]["handlers"] = ["console"]
    LOGGING["root"]["level"] = "INFO"
