# payments/services/gateway.py

"""
PAYMENT GATEWAY PORT

The order core never talks to a provider SDK. Views and reconciliation
ask get_payment_gateway() for whatever settings.PAYMENT_GATEWAY_CLASS
points at (Razorpay in production, a fake in tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from payments.services.exceptions import PaymentConfigurationError


class PaymentGateway(ABC):
    """Interface every gateway adapter implements."""

    name = "gateway"

    @abstractmethod
    def create_order(
        self,
        *,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: Optional[dict] = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def refund(self, payment_id: str, *, amount: Optional[Decimal] = None) -> dict[str, Any]:
        raise NotImplementedError


def get_payment_gateway() -> PaymentGateway:
    dotted = getattr(settings, "PAYMENT_GATEWAY_CLASS", "") or ""
    try:
        gateway_cls = import_string(dotted)
    except ImportError as exc:
        raise PaymentConfigurationError(f"Cannot load payment gateway '{dotted}'") from exc
    try:
        return gateway_cls()
    except TypeError as exc:
        raise PaymentConfigurationError(f"Payment gateway '{dotted}' is incomplete") from exc
