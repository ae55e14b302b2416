# orders/services/order_service.py

"""
ORDER SERVICE

Application service for the order lifecycle.

create_order() flow (single DB transaction):
1) validate input (method, amounts, payment claim)
2) re-verify a claimed gateway payment against the server-held secret;
   a payment already recorded on another order is refused
3) reserve stock for every line (all-or-nothing)
4) create Order + OrderItem snapshots + timeline
5) clear the customer's cart

Anything failing after step 3 rolls the transaction back, which gives the
reserved units back to the products.

Every mutating operation locks the order row (select_for_update) and goes
through the single ownership check in permissions.roles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from cart.services import clear_cart, get_cart_lines
from orders.models import Order, OrderItem
from orders.services import timeline as tl
from orders.services.exceptions import (
    InvalidOrderState,
    InvalidStatus,
    OrderForbidden,
    OrderValidationError,
)
from orders.services.lookup import get_order_or_raise, payment_claimed_elsewhere
from orders.services.order_lifecycle import (
    DEFAULT_CANCEL_REASON,
    MAX_RATING,
    MIN_RATING,
    TRANSITION_TARGETS,
    apply_transition,
    validate_cancellable,
    validate_reviewable,
)
from payments.services.reconciliation import verify_payment
from permissions.roles import Principal, assert_can_access_order
from products.services.stock_reservation import (
    InvalidQuantity,
    ReservationLine,
    release,
    reserve,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


@dataclass(frozen=True)
class PaymentClaim:
    """Client-asserted gateway payment, trusted only after signature check."""

    gateway_order_id: str
    payment_id: str
    signature: str
    payment_status: str = Order.PAYMENT_PAID


# ============================================================
# HELPERS
# ============================================================

def _money(value, field: str) -> Decimal:
    if value is None or value == "":
        raise OrderValidationError(f"{field} is required")
    try:
        amount = Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise OrderValidationError(f"{field} must be a valid amount") from exc
    if amount < Decimal("0.00"):
        raise OrderValidationError(f"{field} cannot be negative")
    return amount


def _whole_rating(value) -> int:
    """Ratings are whole numbers; 3.7 is rejected, never truncated."""
    if isinstance(value, bool):
        raise OrderValidationError("rating must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text.startswith("-") else text
        if digits.isdecimal():
            return int(text)
    raise OrderValidationError("rating must be a whole number")


def _require_principal(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise OrderForbidden("Authentication required")
    return principal


def _estimated_delivery_minutes() -> int:
    return int(getattr(settings, "ORDER_ESTIMATED_DELIVERY_MINUTES", 45))


def _validate_claim(payment_method: str, claim: Optional[PaymentClaim]) -> Optional[PaymentClaim]:
    if payment_method not in Order.GATEWAY_METHODS:
        if claim is not None:
            raise OrderValidationError("Payment details are only accepted for online payment methods")
        return None

    if payment_method == Order.METHOD_RAZORPAY:
        if claim is None or claim.payment_status != Order.PAYMENT_PAID:
            raise OrderValidationError("Razorpay orders require a completed payment")

    if claim is None:
        return None

    if claim.payment_status != Order.PAYMENT_PAID:
        raise OrderValidationError("Only completed payments can be attached to a new order")

    if not (claim.gateway_order_id and claim.payment_id and claim.signature):
        raise OrderValidationError("Invalid payment details")

    return claim


# ============================================================
# CREATE
# ============================================================

def create_order(
    principal: Optional[Principal],
    *,
    items: Iterable[ReservationLine],
    delivery_address: dict,
    payment_method: str,
    subtotal,
    delivery_charge,
    total,
    notes: str = "",
    payment_claim: Optional[PaymentClaim] = None,
) -> Order:
    principal = _require_principal(principal)
    user = get_user_model().objects.filter(pk=principal.user_id).first()
    if user is None:
        raise OrderForbidden("Unknown user")

    # ---------------- input validation (nothing mutated) ----------------
    if payment_method not in dict(Order.PAYMENT_METHOD_CHOICES):
        raise OrderValidationError(f"Invalid payment method: {payment_method}")

    if not isinstance(delivery_address, dict) or not delivery_address:
        raise OrderValidationError("Delivery address is required")

    subtotal = _money(subtotal, "subtotal")
    delivery_charge = _money(delivery_charge, "delivery_charge")
    total = _money(total, "total")
    if subtotal + delivery_charge != total:
        raise OrderValidationError("total must equal subtotal + delivery_charge")

    claim = _validate_claim(payment_method, payment_claim)
    if claim is not None:
        verify_payment(claim.gateway_order_id, claim.payment_id, claim.signature)

    # ---------------- reserve + persist (one transaction) ----------------
    now = timezone.now()
    paid = claim is not None
    estimated_delivery = now + timedelta(minutes=_estimated_delivery_minutes())

    with transaction.atomic():
        if paid and payment_claimed_elsewhere(
            payment_id=claim.payment_id,
            gateway_order_id=claim.gateway_order_id,
        ):
            logger.warning(
                "Payment claim already used by another order",
                extra={"payment_id": claim.payment_id, "user_id": principal.user_id},
            )
            raise InvalidOrderState("Payment has already been used for another order")

        lines = list(items or [])
        if not lines:
            lines = get_cart_lines(user)
        if not lines:
            raise OrderValidationError("No items in order")

        try:
            manifest = reserve(lines)
        except InvalidQuantity as exc:
            raise OrderValidationError(str(exc)) from exc

        order = Order(
            user=user,
            delivery_address=delivery_address,
            payment_method=payment_method,
            payment_status=Order.PAYMENT_PAID if paid else Order.PAYMENT_PENDING,
            status=Order.STATUS_CONFIRMED if paid else Order.STATUS_PENDING,
            subtotal=subtotal,
            delivery_charge=delivery_charge,
            total=total,
            notes=(notes or "").strip(),
            estimated_delivery=estimated_delivery,
            timeline=tl.dump_timeline(
                tl.initial_timeline(now, confirmed=paid, estimated_delivery=estimated_delivery)
            ),
        )
        if paid:
            order.gateway_order_id = claim.gateway_order_id
            order.gateway_payment_id = claim.payment_id
            order.gateway_signature = claim.signature
        try:
            with transaction.atomic():
                order.save()
        except IntegrityError as exc:
            raise InvalidOrderState("Payment has already been used for another order") from exc

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    line_no=idx,
                    product_id=item.product_id,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    emoji=item.emoji,
                )
                for idx, item in enumerate(manifest)
            ]
        )

        clear_cart(user)

    logger.info(
        "Order created",
        extra={
            "order_number": order.order_number,
            "payment_status": order.payment_status,
            "payment_method": payment_method,
            "user_id": principal.user_id,
        },
    )
    return order


# ============================================================
# READ
# ============================================================

def get_order(principal: Optional[Principal], order_id) -> Order:
    principal = _require_principal(principal)
    order = get_order_or_raise(order_id)
    assert_can_access_order(principal, order)
    return order


def list_orders(principal: Optional[Principal]) -> QuerySet:
    principal = _require_principal(principal)
    return (
        Order.objects.filter(user_id=principal.user_id)
        .prefetch_related("items")
        .order_by("-created_at")
    )


def list_all_orders(principal: Optional[Principal]) -> QuerySet:
    principal = _require_principal(principal)
    if not principal.is_admin:
        raise OrderForbidden("Admin access required")
    return Order.objects.select_related("user").prefetch_related("items").order_by("-created_at")


# ============================================================
# CANCEL
# ============================================================

@transaction.atomic
def cancel_order(principal: Optional[Principal], order_id, reason: Optional[str] = None) -> Order:
    principal = _require_principal(principal)
    order = get_order_or_raise(order_id, for_update=True)
    assert_can_access_order(principal, order)
    validate_cancellable(order=order)

    release([ReservationLine(i.product_id, i.quantity) for i in order.items.all()])

    order.status = Order.STATUS_CANCELLED
    order.cancelled_at = timezone.now()
    order.cancel_reason = (reason or "").strip()[:255] or DEFAULT_CANCEL_REASON

    changed = ["status", "cancelled_at", "cancel_reason", "updated_at"]
    if order.payment_status == Order.PAYMENT_PAID:
        order.payment_status = Order.PAYMENT_REFUNDED
        changed.append("payment_status")

    order.save(update_fields=changed)

    logger.info(
        "Order cancelled",
        extra={
            "order_number": order.order_number,
            "by_admin": principal.is_admin,
            "payment_status": order.payment_status,
        },
    )
    return order


# ============================================================
# ADMIN TRANSITION
# ============================================================

@transaction.atomic
def transition_status(principal: Optional[Principal], order_id, new_status: str) -> Order:
    principal = _require_principal(principal)
    if not principal.is_admin:
        raise OrderForbidden("Admin access required")

    if new_status not in TRANSITION_TARGETS:
        raise InvalidStatus(f"Invalid status: {new_status}")

    order = get_order_or_raise(order_id, for_update=True)
    previous = order.status

    changed = apply_transition(order, new_status, now=timezone.now())
    order.save(update_fields=changed + ["updated_at"])

    logger.info(
        "Order status changed",
        extra={"order_number": order.order_number, "from": previous, "to": new_status},
    )
    return order


# ============================================================
# REVIEW
# ============================================================

@transaction.atomic
def add_review(principal: Optional[Principal], order_id, rating, review: str = "") -> Order:
    principal = _require_principal(principal)
    order = get_order_or_raise(order_id, for_update=True)
    assert_can_access_order(principal, order, allow_admin=False)
    validate_reviewable(order=order)

    rating = _whole_rating(rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise OrderValidationError(f"rating must be between {MIN_RATING} and {MAX_RATING}")

    order.rating = rating
    order.review = (review or "").strip()
    order.save(update_fields=["rating", "review", "updated_at"])

    logger.info("Order reviewed", extra={"order_number": order.order_number, "rating": rating})
    return order
