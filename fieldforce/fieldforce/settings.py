"""
Django settings for fieldforce project.

Every value can be overridden from the environment; defaults are suitable
for local development and the test suite (SQLite, UTC).
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    v = os.environ.get(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y")


def _env_int(name, default):
    v = os.environ.get(name)
    try:
        return int(v) if v not in (None, "") else default
    except ValueError:
        return default


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-fieldforce-dev-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "auto_attendance.apps.AutoAttendanceConfig",
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

ROOT_URLCONF = "fieldforce.urls"

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

WSGI_APPLICATION = "fieldforce.wsgi.application"

# Database
DB_ENGINE = os.environ.get("DB_ENGINE", "django.db.backends.sqlite3")
if DB_ENGINE.endswith("sqlite3"):
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("DB_NAME", "fieldforce"),
            "USER": os.environ.get("DB_USER", ""),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", ""),
            "CONN_MAX_AGE": _env_int("DB_CONN_MAX_AGE", 60),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# ========= Auto attendance =========
AUTO_ATTENDANCE_CRON = os.environ.get("AUTO_ATTENDANCE_CRON", "0 2 * * *")
AUTO_ATTENDANCE_TOLERANCE_MINUTES = _env_int("AUTO_ATTENDANCE_TOLERANCE_MINUTES", 15)
AUTO_ATTENDANCE_FAILURE_ALERT_THRESHOLD = _env_int("AUTO_ATTENDANCE_FAILURE_ALERT_THRESHOLD", 1)
AUTO_ATTENDANCE_RUN_STALE_AFTER_MINUTES = _env_int("AUTO_ATTENDANCE_RUN_STALE_AFTER_MINUTES", 120)
AUTO_ATTENDANCE_MISFIRE_GRACE_SECONDS = _env_int("AUTO_ATTENDANCE_MISFIRE_GRACE_SECONDS", 3600)
AUTO_ATTENDANCE_PERSIST_DEFAULT_TIMEZONE = _env_bool("AUTO_ATTENDANCE_PERSIST_DEFAULT_TIMEZONE", False)
AUTO_ATTENDANCE_MIRROR_MANUAL_EVENTS = _env_bool("AUTO_ATTENDANCE_MIRROR_MANUAL_EVENTS", True)
AUTO_ATTENDANCE_ALERT_WEBHOOK_URL = os.environ.get("AUTO_ATTENDANCE_ALERT_WEBHOOK_URL") or None
AUTO_ATTENDANCE_ALERT_TIMEOUT = _env_int("AUTO_ATTENDANCE_ALERT_TIMEOUT", 8)
AUTO_ATTENDANCE_LOG_LEVEL = os.environ.get("AUTO_ATTENDANCE_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "auto_attendance": {
            "handlers": ["console"],
            "level": AUTO_ATTENDANCE_LOG_LEVEL,
            "propagate": True,
        },
        "apscheduler": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
