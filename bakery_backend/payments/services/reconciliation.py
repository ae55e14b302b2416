# payments/services/reconciliation.py

"""
PAYMENT RECONCILIATION

Turns an externally reported payment into order state, exactly once.

Entry points:
- verify_payment()          signature check only, nothing mutated
- reconcile_payment()       client callback after checkout (signed ids)
- record_payment_failure()  client reports a failed / dismissed payment
- handle_webhook_event()    gateway-to-server events (signed body)

Rules:
- A mismatching signature never touches the order.
- Pending payment  -> Paid, and a Pending order is advanced to Confirmed
  through the same transition rule admins use.
- The same payment id reported twice is a no-op.
- A payment (or gateway order) already recorded on another order is
  rejected; one payment settles one order.
- A different payment id on an already paid order is rejected.
- A payment that lands on a Cancelled order is recorded as Refunded
  (the money has to go back).
- A failure report never overwrites a Paid / Refunded order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from orders.models import Order
from orders.services.exceptions import InvalidOrderState
from orders.services.lookup import get_order_or_raise, payment_claimed_elsewhere
from orders.services.order_lifecycle import apply_transition
from payments.models import PaymentWebhookEvent
from payments.services.exceptions import SignatureMismatch, WebhookSignatureMismatch
from payments.services.signatures import verify_payment_signature, verify_webhook_signature
from permissions.roles import Principal, assert_can_access_order

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"

EVENT_PAYMENT_CAPTURED = "payment.captured"
EVENT_PAYMENT_FAILED = "payment.failed"

SETTLED_PAYMENT_STATUSES = {
    Order.PAYMENT_PAID,
    Order.PAYMENT_REFUNDED,
}


@dataclass(frozen=True)
class Verified:
    gateway_order_id: str
    payment_id: str
    signature: str


@dataclass(frozen=True)
class Reconciliation:
    verified: Verified
    order: Optional[Order] = None
    changed: bool = False


# ============================================================
# VERIFY
# ============================================================

def verify_payment(gateway_order_id: str, payment_id: str, signature: str) -> Verified:
    if not verify_payment_signature(gateway_order_id, payment_id, signature):
        logger.warning(
            "Payment signature mismatch",
            extra={"gateway_order_id": gateway_order_id, "payment_id": payment_id},
        )
        raise SignatureMismatch("Payment verification failed. Invalid signature.")

    return Verified(
        gateway_order_id=str(gateway_order_id),
        payment_id=str(payment_id),
        signature=str(signature).strip(),
    )


# ============================================================
# STATE CHANGES (caller holds the row lock)
# ============================================================

def _apply_capture(order: Order, *, gateway_order_id: str, payment_id: str, signature: str = "") -> bool:
    if order.payment_method not in Order.GATEWAY_METHODS:
        raise InvalidOrderState("Order is not paid through the payment gateway")

    if order.gateway_order_id and order.gateway_order_id != gateway_order_id:
        raise InvalidOrderState("Payment belongs to a different gateway order")

    if order.payment_status in SETTLED_PAYMENT_STATUSES:
        if order.gateway_payment_id == payment_id:
            return False
        raise InvalidOrderState("Order is already paid with a different payment")

    if payment_claimed_elsewhere(
        payment_id=payment_id,
        gateway_order_id=gateway_order_id,
        exclude_pk=order.pk,
    ):
        logger.warning(
            "Payment already recorded on another order",
            extra={"order_number": order.order_number, "payment_id": payment_id},
        )
        raise InvalidOrderState("Payment is already recorded on another order")

    now = timezone.now()
    changed = ["payment_status", "gateway_order_id", "gateway_payment_id", "payment_error"]

    order.gateway_order_id = gateway_order_id
    order.gateway_payment_id = payment_id
    order.payment_error = ""
    if signature:
        order.gateway_signature = signature
        changed.append("gateway_signature")

    if order.status == Order.STATUS_CANCELLED:
        order.payment_status = Order.PAYMENT_REFUNDED
        logger.warning(
            "Payment captured for a cancelled order; refund owed",
            extra={"order_number": order.order_number, "payment_id": payment_id},
        )
    else:
        order.payment_status = Order.PAYMENT_PAID
        if order.status == Order.STATUS_PENDING:
            changed += apply_transition(order, Order.STATUS_CONFIRMED, now=now)

    try:
        with transaction.atomic():
            order.save(update_fields=changed + ["updated_at"])
    except IntegrityError as exc:
        raise InvalidOrderState("Payment is already recorded on another order") from exc

    logger.info(
        "Payment reconciled",
        extra={
            "order_number": order.order_number,
            "payment_id": payment_id,
            "payment_status": order.payment_status,
            "status": order.status,
        },
    )
    return True


def _apply_failure(order: Order, *, reason: str) -> bool:
    if order.payment_status in SETTLED_PAYMENT_STATUSES:
        logger.info(
            "Payment failure ignored for settled order",
            extra={"order_number": order.order_number, "payment_status": order.payment_status},
        )
        return False

    order.payment_status = Order.PAYMENT_FAILED
    order.payment_error = (str(reason or "").strip() or DEFAULT_FAILURE_REASON)[:255]
    order.save(update_fields=["payment_status", "payment_error", "updated_at"])

    logger.info(
        "Payment failure recorded",
        extra={"order_number": order.order_number, "reason": order.payment_error},
    )
    return True


# ============================================================
# CLIENT CALLBACKS
# ============================================================

@transaction.atomic
def reconcile_payment(
    gateway_order_id: str,
    payment_id: str,
    signature: str,
    order_id=None,
    *,
    principal: Optional[Principal] = None,
) -> Reconciliation:
    verified = verify_payment(gateway_order_id, payment_id, signature)

    if order_id is None:
        return Reconciliation(verified=verified)

    order = get_order_or_raise(order_id, for_update=True)
    if principal is not None:
        assert_can_access_order(principal, order)

    changed = _apply_capture(
        order,
        gateway_order_id=verified.gateway_order_id,
        payment_id=verified.payment_id,
        signature=verified.signature,
    )
    return Reconciliation(verified=verified, order=order, changed=changed)


@transaction.atomic
def record_payment_failure(order_id, reason: str = "", *, principal: Optional[Principal] = None) -> Order:
    order = get_order_or_raise(order_id, for_update=True)
    if principal is not None:
        assert_can_access_order(principal, order)

    _apply_failure(order, reason=reason)
    return order


# ============================================================
# WEBHOOK
# ============================================================

def _payment_entity(payload: dict) -> dict:
    entity = ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}
    return entity if isinstance(entity, dict) else {}


def handle_webhook_event(
    raw_body: bytes,
    signature: Optional[str],
    event_id: Optional[str],
    payload: dict,
) -> tuple[PaymentWebhookEvent, bool]:
    """
    Returns (event row, processed). processed is False for a redelivery.
    """
    if not verify_webhook_signature(raw_body, signature):
        logger.warning("Invalid webhook signature")
        raise WebhookSignatureMismatch("Invalid webhook signature")

    payload = payload if isinstance(payload, dict) else {}
    event_type = str(payload.get("event") or "").strip()
    entity = _payment_entity(payload)
    gateway_order_id = str(entity.get("order_id") or "").strip()
    payment_id = str(entity.get("id") or "").strip()

    event_id = str(event_id or "").strip() or f"{event_type}:{payment_id}"

    with transaction.atomic():
        event, created = PaymentWebhookEvent.objects.select_for_update().get_or_create(
            event_id=event_id,
            defaults={
                "event_type": event_type,
                "gateway_order_id": gateway_order_id,
                "gateway_payment_id": payment_id,
                "payload": payload,
            },
        )

        if not created:
            logger.info("Duplicate webhook ignored", extra={"event_id": event_id})
            return event, False

        order = None
        if gateway_order_id:
            order = (
                Order.objects.select_for_update()
                .filter(gateway_order_id=gateway_order_id)
                .first()
            )

        outcome = PaymentWebhookEvent.OUTCOME_IGNORED

        if order is None:
            logger.warning(
                "Webhook for unknown gateway order",
                extra={"event_id": event_id, "gateway_order_id": gateway_order_id},
            )
        elif event_type == EVENT_PAYMENT_CAPTURED and payment_id:
            try:
                _apply_capture(order, gateway_order_id=gateway_order_id, payment_id=payment_id)
                outcome = PaymentWebhookEvent.OUTCOME_RECONCILED
            except InvalidOrderState as exc:
                logger.warning(
                    "Webhook capture not applied",
                    extra={"event_id": event_id, "order_number": order.order_number, "reason": str(exc)},
                )
        elif event_type == EVENT_PAYMENT_FAILED:
            reason = entity.get("error_description") or entity.get("error_reason") or ""
            if _apply_failure(order, reason=reason):
                outcome = PaymentWebhookEvent.OUTCOME_FAILURE_RECORDED

        event.outcome = outcome
        event.save(update_fields=["outcome"])

    return event, True
