# orders/services/lookup.py

"""
Order fetch helpers shared by order and payment services.

for_update=True must be called inside transaction.atomic(); it takes the
row lock that serializes every mutation of one order.
"""

from __future__ import annotations

import uuid
from typing import Optional

from orders.models import Order
from orders.services.exceptions import OrderNotFound


def parse_order_id(order_id) -> Optional[uuid.UUID]:
    if isinstance(order_id, uuid.UUID):
        return order_id
    try:
        return uuid.UUID(str(order_id))
    except (TypeError, ValueError):
        return None


def get_order_or_raise(order_id, *, for_update: bool = False) -> Order:
    pk = parse_order_id(order_id)
    if pk is None:
        raise OrderNotFound("Order not found")

    qs = Order.objects.all()
    if for_update:
        qs = qs.select_for_update()

    order = qs.filter(pk=pk).first()
    if order is None:
        raise OrderNotFound("Order not found")
    return order


def payment_claimed_elsewhere(*, payment_id: str = "", gateway_order_id: str = "", exclude_pk=None) -> bool:
    """
    True when another order already carries this gateway payment id or
    gateway order id. Empty ids never match.
    """
    qs = Order.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)

    if payment_id and qs.filter(gateway_payment_id=payment_id).exists():
        return True
    if gateway_order_id and qs.filter(gateway_order_id=gateway_order_id).exists():
        return True
    return False
