# payments/services/signatures.py

"""
GATEWAY SIGNATURES

- Payment signature: hex HMAC-SHA256(key_secret, "<gateway_order_id>|<payment_id>")
- Webhook signature: hex HMAC-SHA256(webhook_secret, raw request body)

All comparisons are constant-time.
"""

from __future__ import annotations

import hashlib
import hmac

from django.conf import settings

from payments.services.exceptions import PaymentConfigurationError


def _secret(name: str) -> bytes:
    value = (getattr(settings, name, "") or "").strip()
    if not value:
        raise PaymentConfigurationError(f"{name} is not configured")
    return value.encode("utf-8")


def compute_payment_signature(gateway_order_id: str, payment_id: str) -> str:
    message = f"{gateway_order_id}|{payment_id}".encode("utf-8")
    return hmac.new(_secret("RAZORPAY_KEY_SECRET"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(gateway_order_id: str, payment_id: str, signature: str | None) -> bool:
    if not gateway_order_id or not payment_id or not signature:
        return False
    expected = compute_payment_signature(gateway_order_id, payment_id)
    return hmac.compare_digest(expected, str(signature).strip())


def compute_webhook_signature(raw_body: bytes) -> str:
    return hmac.new(_secret("RAZORPAY_WEBHOOK_SECRET"), raw_body or b"", hashlib.sha256).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str | None) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(compute_webhook_signature(raw_body), str(signature).strip())
