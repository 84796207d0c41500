"""Django settings for the bloomcast service.

Everything deployment-specific comes from environment variables; the
defaults are suitable for local development and tests.
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "dev-only-insecure-secret-key"
)
DEBUG = _env_bool("DJANGO_DEBUG", default=False)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "django_prometheus",
    "rest_framework",
    "drf_spectacular",
    "ndvi",
    "phenology",
]

MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": []},
    }
]

# Nothing is persisted; the database only backs contrib app tables.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("SQLITE_PATH", ":memory:"),
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "bloomcast",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True
STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "config.api.exceptions.custom_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Bloomcast API",
    "DESCRIPTION": (
        "NDVI point series from NASA AppEEARS and phenological stage "
        "estimates."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

SERVICE_NAME = os.environ.get("SERVICE_NAME", "bloomcast")

# AppEEARS. Without credentials the service serves labelled demo series.
APPEEARS_USER = os.environ.get("APPEEARS_USER", "")
APPEEARS_PASS = os.environ.get("APPEEARS_PASS", "")
APPEEARS_BASE_URL = os.environ.get(
    "APPEEARS_BASE_URL", "https://appeears.earthdatacloud.nasa.gov/api"
)
APPEEARS_DEFAULT_PRODUCT = os.environ.get(
    "APPEEARS_DEFAULT_PRODUCT", "MYD13Q1.061"
)
APPEEARS_TOKEN_MAX_AGE_HOURS = float(
    os.environ.get("APPEEARS_TOKEN_MAX_AGE_HOURS", "11")
)
APPEEARS_POLL_INTERVAL_SECONDS = float(
    os.environ.get("APPEEARS_POLL_INTERVAL_SECONDS", "4")
)
APPEEARS_POLL_MAX_ATTEMPTS = int(
    os.environ.get("APPEEARS_POLL_MAX_ATTEMPTS", "60")
)
APPEEARS_LOGIN_ON_STARTUP = _env_bool("APPEEARS_LOGIN_ON_STARTUP")
NDVI_MAX_CONCURRENT_REQUESTS = int(
    os.environ.get("NDVI_MAX_CONCURRENT_REQUESTS", "1")
)
NDVI_MAX_DATERANGE_DAYS = int(
    os.environ.get("NDVI_MAX_DATERANGE_DAYS", "370")
)

PHENOLOGY_HORIZON_DAYS = int(os.environ.get("PHENOLOGY_HORIZON_DAYS", "16"))
# Optional overrides, e.g. {"flat_slope": 0.01, "peak_ratio": 0.85}.
PHENOLOGY_THRESHOLDS: dict[str, float] = {}

LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"level": "WARNING", "propagate": True},
        "httpx": {"level": "WARNING", "propagate": True},
    },
}
