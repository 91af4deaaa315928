# config/settings/prod.py
from .base import *  # noqa

DEBUG = False
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if h]

if SECRET_KEY == "unsafe-dev-key":
    raise RuntimeError("DJANGO_SECRET_KEY must be set in production.")
