# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- fixed payment secrets so signatures are reproducible
- in-memory SQLite + fast password hashing
- throttles relaxed so suites never trip them
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False

SECRET_KEY = "test-secret-key-not-for-production"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RAZORPAY_KEY_ID = "rzp_test_key"
RAZORPAY_KEY_SECRET = "test_razorpay_secret"
RAZORPAY_WEBHOOK_SECRET = "test_webhook_secret"
PAYMENT_GATEWAY_CLASS = "payments.tests.fakes.FakeGateway"

TIME_ZONE = "Asia/Kolkata"
ORDER_ESTIMATED_DELIVERY_MINUTES = 45

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/min",
        "user": "10000/min",
        "order_write": "10000/min",
        "webhook": "10000/min",
    },
}
