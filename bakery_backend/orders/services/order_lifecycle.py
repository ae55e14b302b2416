"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Order entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- Single source of truth (shared by admin transitions and payment
  reconciliation)
"""

from __future__ import annotations

from datetime import datetime

from orders.models import Order
from orders.services import timeline as tl
from orders.services.exceptions import CannotCancel, InvalidOrderState, InvalidStatus

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATUSES = {
    Order.STATUS_DELIVERED,
    Order.STATUS_CANCELLED,
}

# Statuses an admin may move an order to. Cancelled is reached only
# through cancellation (which releases stock).
TRANSITION_TARGETS = (
    Order.STATUS_PENDING,
    Order.STATUS_CONFIRMED,
    Order.STATUS_PREPARING,
    Order.STATUS_OUT_FOR_DELIVERY,
    Order.STATUS_DELIVERED,
)

DEFAULT_CANCEL_REASON = "Cancelled by user"

MIN_RATING = 0
MAX_RATING = 5


# ============================================================
# DOMAIN RULES
# ============================================================


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(*, from_status: str, to_status: str) -> bool:
    if is_terminal(from_status):
        return False

    return to_status in TRANSITION_TARGETS


def validate_transition(*, order: Order, target_status: str):
    if target_status not in TRANSITION_TARGETS:
        raise InvalidStatus(f"Invalid status: {target_status}")

    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidStatus(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )


def validate_cancellable(*, order: Order):
    if is_terminal(order.status):
        raise CannotCancel(order.status)


def validate_reviewable(*, order: Order):
    if order.status != Order.STATUS_DELIVERED:
        raise InvalidOrderState("Can only review delivered orders")


# ============================================================
# IN-MEMORY APPLICATION
# ============================================================


def apply_transition(order: Order, target_status: str, *, now: datetime) -> list[str]:
    """
    Move `order` to `target_status` in memory and return the changed
    field names. The caller holds the row lock and saves.
    """
    validate_transition(order=order, target_status=target_status)

    order.status = target_status
    order.timeline = tl.dump_timeline(
        tl.advance_timeline(tl.load_timeline(order.timeline), target_status, now)
    )
    changed = ["status", "timeline"]

    if target_status == Order.STATUS_DELIVERED:
        order.delivered_at = now
        changed.append("delivered_at")

    return changed
