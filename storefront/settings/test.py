"""Test settings."""

import os

os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://:memory:")

from .base import *  # noqa: E402,F401,F403

SECRET_KEY = "test-secret-key-not-for-production"
DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "Storefront <shop@example.com>"
ADMIN_NOTIFICATION_EMAILS = "owner@example.com, Owner@example.com"

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_PUBLISHABLE_KEY = "pk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test_secret"
STRIPE_CURRENCY = "idr"
SITE_URL = "https://shop.example.com"

AUTO_MIGRATE = False
SESSION_SAVE_EVERY_REQUEST = False
