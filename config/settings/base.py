# config/settings/base.py
from pathlib import Path
import os
from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent.parent  # repo root
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "unsafe-dev-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    # Django
    "django.contrib.auth",
    "django.contrib.contenttypes",

    # Third-party
    "rest_framework",

    # Domain apps (modular monolith)
    "mp_core.branches",
    "mp_core.revenue",
    "mp_core.constraints",
    "mp_core.doctors",
    "mp_core.scenarios",
    "mp_core.staffing",
    "mp_core.audit",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("DB_NAME", "manpower"),
        "USER": os.getenv("DB_USER", "manpower"),
        "PASSWORD": os.getenv("DB_PASSWORD", "manpower"),
        "HOST": os.getenv("DB_HOST", "127.0.0.1"),
        "PORT": os.getenv("DB_PORT", "5432"),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Asia/Bangkok"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "mp_core": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}

# Business ceiling checked at the doctor-assignment write boundary
DOCTOR_MAX_PER_BRANCH_PER_DAY = int(os.getenv("DOCTOR_MAX_PER_BRANCH_PER_DAY", "6"))

# Case -> revenue equivalents used when a revenue row only has case counts
REVENUE_VITAMIN_CASE_MULTIPLIER = float(os.getenv("REVENUE_VITAMIN_CASE_MULTIPLIER", "1000"))
REVENUE_SLIM_PEN_CASE_MULTIPLIER = float(os.getenv("REVENUE_SLIM_PEN_CASE_MULTIPLIER", "1500"))
