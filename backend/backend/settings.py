"""
Django settings for the marketplace backend.

Every deploy-specific value is read from the environment with a safe
development default.  Tunables read by the domain code fall back to
``core.constants`` when unset.
"""

import os
from datetime import timedelta
from pathlib import Path

from core import constants

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes", "on")


def env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-dev-only-change-me")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")


# ── Applications ─────────────────────────────────────────────────────

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",

    # Local
    "core",
    "catalog",
    "addresses",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"


# ── Database ─────────────────────────────────────────────────────────
# PostgreSQL in production (advisory locks); SQLite for development and
# tests.  SQLite opens every transaction with BEGIN IMMEDIATE so writers
# serialise instead of failing on lock upgrade, and the test database is
# a file so threaded tests get independent connections.

if os.environ.get("DB_ENGINE", "sqlite").lower() == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("POSTGRES_DB", "marketplace"),
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", "postgres"),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                # Units of work lower this to INVARIANT_LOCK_TIMEOUT_MS at BEGIN.
                "timeout": int(os.environ.get("SQLITE_TIMEOUT", "20")),
            },
            "TEST": {
                "NAME": BASE_DIR / "test_db.sqlite3",
            },
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ── Auth / i18n / static ─────────────────────────────────────────────

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


# ── Django REST Framework ────────────────────────────────────────────

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "core.domain.exception_handler.domain_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("JWT_REFRESH_DAYS", "7"))),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Marketplace Catalog API",
    "DESCRIPTION": (
        "Seller draft submission, moderation queue and address book, built on a "
        "transactional outbox and transaction-scoped invariant locks."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# ── Catalog / moderation tunables ────────────────────────────────────

CATALOG_MIN_DRAFT_IMAGES = int(os.environ.get("CATALOG_MIN_DRAFT_IMAGES", constants.MIN_DRAFT_IMAGES))
CATALOG_MIN_DRAFT_VARIANTS = int(os.environ.get("CATALOG_MIN_DRAFT_VARIANTS", constants.MIN_DRAFT_VARIANTS))
CATALOG_PRODUCT_CODE_MAX_ATTEMPTS = int(
    os.environ.get("CATALOG_PRODUCT_CODE_MAX_ATTEMPTS", constants.PRODUCT_CODE_MAX_ATTEMPTS)
)
CATALOG_COST_PRICE_RATIO = os.environ.get("CATALOG_COST_PRICE_RATIO", constants.COST_PRICE_RATIO)
MODERATION_ESCALATION_AGE_HOURS = float(
    os.environ.get("MODERATION_ESCALATION_AGE_HOURS", constants.ESCALATION_AGE_HOURS)
)

# ── Invariant lock ───────────────────────────────────────────────────

INVARIANT_LOCK_TIMEOUT_MS = int(os.environ.get("INVARIANT_LOCK_TIMEOUT_MS", constants.LOCK_TIMEOUT_MS))

# ── Outbound service clients ─────────────────────────────────────────

SELLER_SERVICE_URL = os.environ.get("SELLER_SERVICE_URL", "")
NOTIFICATION_SERVICE_URL = os.environ.get("NOTIFICATION_SERVICE_URL", "")
SERVICE_CLIENT_TIMEOUT = float(os.environ.get("SERVICE_CLIENT_TIMEOUT", constants.SERVICE_CLIENT_TIMEOUT))
SERVICE_NAME = os.environ.get("SERVICE_NAME", constants.SERVICE_NAME)
SERVICE_SECRET = os.environ.get("SERVICE_SECRET", "")


# ── Logging ──────────────────────────────────────────────────────────

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "core": {"level": LOG_LEVEL},
        "catalog": {"level": LOG_LEVEL},
        "addresses": {"level": LOG_LEVEL},
    },
}
