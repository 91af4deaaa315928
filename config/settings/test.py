# config/settings/test.py
from .base import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOGGING["loggers"]["mp_core"]["level"] = "DEBUG"  # noqa: F405
# caplog listens on the root logger
LOGGING["loggers"]["mp_core"]["propagate"] = True  # noqa: F405
