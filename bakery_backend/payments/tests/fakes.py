# payments/tests/fakes.py

"""
In-memory gateway used by the test settings (PAYMENT_GATEWAY_CLASS).
Every call is recorded on the class so tests can assert on it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from payments.services.gateway import PaymentGateway


class FakeGateway(PaymentGateway):
    name = "fake"

    calls: list[tuple[str, dict]] = []
    payments: dict[str, dict] = {}

    @classmethod
    def reset(cls):
        cls.calls = []
        cls.payments = {}

    def create_order(
        self,
        *,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> dict[str, Any]:
        self.calls.append(("create_order", {"amount": amount, "currency": currency, "receipt": receipt}))
        return {
            "id": f"order_fake_{len(self.calls)}",
            "amount": int(amount * 100),
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        self.calls.append(("fetch_payment", {"payment_id": payment_id}))
        return self.payments.get(payment_id, {"id": payment_id, "status": "captured"})

    def refund(self, payment_id: str, *, amount: Optional[Decimal] = None) -> dict[str, Any]:
        self.calls.append(("refund", {"payment_id": payment_id, "amount": amount}))
        return {"id": f"rfnd_{payment_id}", "payment_id": payment_id, "status": "processed"}


class IncompleteGateway(PaymentGateway):
    """Adapter missing fetch_payment and refund; cannot be instantiated."""

    name = "incomplete"

    def create_order(self, *, amount, currency, receipt, notes=None):
        return {"id": "order_incomplete"}
