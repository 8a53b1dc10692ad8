"""
Base settings for DerivDesk.

This contains common configuration shared between development and production.
"""

import os
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# ================================================================================
# APPLICATION DEFINITION
# ================================================================================

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    # Local apps
    "derivatives",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "derivdesk.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
            ],
        },
    },
]

ASGI_APPLICATION = "derivdesk.asgi.application"

# ================================================================================
# INTERNATIONALIZATION
# ================================================================================

LANGUAGE_CODE = "en-us"
# Option expirations are evaluated at 23:59:59 in this zone
TIME_ZONE = os.environ.get("TIME_ZONE", "America/New_York")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

STATIC_URL = "/static/"

# ================================================================================
# OPTIONS DATA SETTINGS
# ================================================================================

OPTION_CHAIN_CACHE_TTL = int(os.environ.get("OPTION_CHAIN_CACHE_TTL", "300"))  # 5 minutes

# Maximum option chain requests in flight during one enrichment pass
ENRICHMENT_MAX_CONCURRENCY = int(os.environ.get("ENRICHMENT_MAX_CONCURRENCY", "4"))

# Overall budget for chain fetches in one enrichment pass (unset = wait for all)
_deadline_raw = os.environ.get("ENRICHMENT_DEADLINE_SECONDS")
ENRICHMENT_DEADLINE_SECONDS = float(_deadline_raw) if _deadline_raw else None

# ================================================================================
# POLYGON QUOTE PROVIDER
# ================================================================================

POLYGON_API_KEY = os.environ.get("POLYGON_API_KEY")
POLYGON_BASE_URL = os.environ.get("POLYGON_BASE_URL", "https://api.polygon.io")
POLYGON_TIMEOUT = int(os.environ.get("POLYGON_TIMEOUT", "30"))

# ================================================================================
# CLEAR STREET CUSTODY CONFIGURATION
# ================================================================================

CLEAR_STREET_ENVIRONMENT = os.environ.get("CLEAR_STREET_ENVIRONMENT", "production")

_CLEAR_STREET_API_URLS = {
    "production": "https://api.clearstreet.io/studio/v2",
    "sandbox": "https://sandbox-api.clearstreet.io/studio/v2",
}

CLEAR_STREET_CONFIG = {
    "CLIENT_ID": os.environ.get("CLEAR_STREET_CLIENT_ID", ""),
    "CLIENT_SECRET": os.environ.get("CLEAR_STREET_CLIENT_SECRET", ""),
    "ACCOUNT_ID": os.environ.get("CLEAR_STREET_ACCOUNT_ID", ""),
    "ENVIRONMENT": CLEAR_STREET_ENVIRONMENT,
    "TOKEN_URL": os.environ.get(
        "CLEAR_STREET_TOKEN_URL", "https://auth.clearstreet.io/oauth/token"
    ),
    "API_BASE_URL": os.environ.get(
        "CLEAR_STREET_API_URL",
        _CLEAR_STREET_API_URLS.get(CLEAR_STREET_ENVIRONMENT, _CLEAR_STREET_API_URLS["production"]),
    ),
    "AUDIENCE": os.environ.get("CLEAR_STREET_AUDIENCE", "https://api.clearstreet.io"),
}
