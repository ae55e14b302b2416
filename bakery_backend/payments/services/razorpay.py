# payments/services/razorpay.py
from __future__ import annotations

import base64
import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from django.conf import settings

from payments.services.exceptions import PaymentConfigurationError, PaymentGatewayError
from payments.services.gateway import PaymentGateway

logger = logging.getLogger(__name__)

RAZORPAY_BASE = "https://api.razorpay.com/v1"


def _to_paise(amount: Decimal) -> int:
    try:
        rupees = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError("amount must be a valid Decimal") from exc
    paise = (rupees * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(paise)


def _safe_preview(text: str, limit: int = 500) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _error_message(raw: str) -> str:
    try:
        parsed = json.loads(raw or "")
    except ValueError:
        return _safe_preview(raw)
    if isinstance(parsed, dict):
        err = parsed.get("error") or {}
        if isinstance(err, dict) and err.get("description"):
            return str(err["description"])
    return _safe_preview(raw)


class RazorpayGateway(PaymentGateway):
    """
    Minimal Razorpay REST client (orders, payments, refunds).

    Auth is HTTP basic with key_id / key_secret. Amounts go over the wire
    in paise.
    """

    name = "razorpay"

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None, timeout: int = 25):
        self.key_id = (key_id if key_id is not None else getattr(settings, "RAZORPAY_KEY_ID", "")).strip()
        self.key_secret = (
            key_secret if key_secret is not None else getattr(settings, "RAZORPAY_KEY_SECRET", "")
        ).strip()
        self.timeout = timeout

    def _auth_header(self) -> str:
        if not self.key_id or not self.key_secret:
            raise PaymentConfigurationError("RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET are not configured")
        token = base64.b64encode(f"{self.key_id}:{self.key_secret}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"

    def _request_json(self, method: str, path: str, *, body: dict | None = None) -> dict[str, Any]:
        data = None
        if body is not None:
            data = json.dumps(body, ensure_ascii=False).encode("utf-8")

        req = Request(
            f"{RAZORPAY_BASE}{path}",
            data=data,
            headers={
                "Authorization": self._auth_header(),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            method=method,
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            try:
                raw = e.read().decode("utf-8", errors="replace")
            except OSError:
                raw = ""
            logger.exception(
                "Razorpay rejected request",
                extra={"path": path, "status_code": e.code},
            )
            raise PaymentGatewayError(
                f"Razorpay HTTPError: {e.code} {_error_message(raw)}",
                status_code=e.code,
            ) from e
        except URLError as e:
            logger.exception("Razorpay unreachable", extra={"path": path})
            raise PaymentGatewayError(f"Razorpay URLError: {e.reason}") from e

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise PaymentGatewayError(f"Razorpay returned non-JSON: {_safe_preview(raw)}") from e

        if not isinstance(parsed, dict):
            raise PaymentGatewayError("Razorpay returned an unexpected payload")
        return parsed

    # ---------------- operations ----------------

    def create_order(self, *, amount, currency, receipt, notes=None):
        payload = {
            "amount": _to_paise(amount),
            "currency": str(currency or "INR").upper(),
            "receipt": str(receipt)[:40],
        }
        if notes:
            payload["notes"] = notes
        return self._request_json("POST", "/orders", body=payload)

    def fetch_payment(self, payment_id):
        return self._request_json("GET", f"/payments/{quote(str(payment_id), safe='')}")

    def refund(self, payment_id, *, amount=None):
        payload = {}
        if amount is not None:
            payload["amount"] = _to_paise(amount)
        return self._request_json(
            "POST",
            f"/payments/{quote(str(payment_id), safe='')}/refund",
            body=payload,
        )
