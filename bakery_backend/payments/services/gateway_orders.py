# payments/services/gateway_orders.py

"""
Gateway-facing operations that sit next to reconciliation:

- create_gateway_order()  amount -> gateway order id (optionally attached
                          to a local Pending order owned by the caller)
- fetch_payment_details() read a payment back from the gateway
- refund_payment()        admin-triggered refund; a full refund marks the
                          order Refunded, a partial one leaves it Paid

Gateway calls are made outside row locks.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from django.conf import settings
from django.db import transaction

from orders.models import Order
from orders.services.exceptions import InvalidOrderState, OrderForbidden, OrderValidationError
from orders.services.lookup import get_order_or_raise
from payments.services.gateway import get_payment_gateway
from permissions.roles import Principal, assert_can_access_order, owns

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    try:
        amount = Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise OrderValidationError("amount must be a valid decimal") from exc
    if amount <= Decimal("0.00"):
        raise OrderValidationError("amount must be greater than zero")
    return amount


def create_gateway_order(
    principal: Principal,
    *,
    amount=None,
    currency: Optional[str] = None,
    receipt: str = "",
    order_id=None,
) -> dict[str, Any]:
    order = None
    if order_id is not None:
        order = get_order_or_raise(order_id)
        assert_can_access_order(principal, order, allow_admin=False)

        if order.payment_method not in Order.GATEWAY_METHODS:
            raise InvalidOrderState("Order is not paid through the payment gateway")
        if order.status != Order.STATUS_PENDING or order.payment_status not in (
            Order.PAYMENT_PENDING,
            Order.PAYMENT_FAILED,
        ):
            raise InvalidOrderState("Order is not awaiting payment")

        if amount is None:
            amount = order.total
        receipt = receipt or order.order_number

    if amount is None:
        raise OrderValidationError("amount is required")

    value = _money(amount)
    currency = (currency or getattr(settings, "PAYMENT_CURRENCY", "INR")).upper()

    gateway = get_payment_gateway()
    result = gateway.create_order(
        amount=value,
        currency=currency,
        receipt=receipt or f"receipt_{principal.user_id}",
        notes={"user_id": principal.user_id},
    )

    gateway_order_id = str(result.get("id") or "")
    logger.info(
        "Gateway order created",
        extra={"gateway_order_id": gateway_order_id, "amount": str(value), "currency": currency},
    )

    if order is not None and gateway_order_id:
        with transaction.atomic():
            locked = get_order_or_raise(order.pk, for_update=True)
            locked.gateway_order_id = gateway_order_id
            locked.save(update_fields=["gateway_order_id", "updated_at"])

    return result


def fetch_payment_details(principal: Principal, payment_id: str) -> dict[str, Any]:
    if not principal.is_admin:
        order = Order.objects.filter(gateway_payment_id=payment_id).only("user_id").first()
        if order is None or not owns(principal, order.user_id):
            raise OrderForbidden("Not authorized to view this payment")

    return get_payment_gateway().fetch_payment(payment_id)


def refund_payment(
    principal: Principal,
    payment_id: str,
    *,
    amount=None,
) -> tuple[dict[str, Any], Optional[Order]]:
    if not principal.is_admin:
        raise OrderForbidden("Only admins can issue refunds")

    value = _money(amount) if amount is not None else None
    result = get_payment_gateway().refund(payment_id, amount=value)

    logger.info(
        "Gateway refund issued",
        extra={"payment_id": payment_id, "refund_id": result.get("id"), "amount": str(value or "")},
    )

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(gateway_payment_id=payment_id).first()
        if order is None or order.payment_status == Order.PAYMENT_REFUNDED:
            return result, order

        if value is not None and value < order.total:
            # Partial refund: the order stays Paid
            logger.info(
                "Partial refund recorded; payment status unchanged",
                extra={
                    "order_number": order.order_number,
                    "amount": str(value),
                    "order_total": str(order.total),
                },
            )
            return result, order

        order.payment_status = Order.PAYMENT_REFUNDED
        order.save(update_fields=["payment_status", "updated_at"])

    return result, order
