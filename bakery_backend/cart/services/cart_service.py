# cart/services/cart_service.py

"""
CART SERVICE

Read / write helpers keyed by user. Checkout only needs two of them:
- get_cart_lines(user)  -> what to reserve when the request carries no items
- clear_cart(user)      -> run inside the order-creation transaction
"""

from __future__ import annotations

import logging

from django.db import transaction

from cart.models import Cart, CartItem
from products.models import Product
from products.services.stock_reservation import ReservationLine

logger = logging.getLogger(__name__)


def get_or_create_cart(user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def get_cart_lines(user) -> list[ReservationLine]:
    items = CartItem.objects.filter(cart__user=user).order_by("created_at")
    return [ReservationLine(product_id=i.product_id, quantity=i.quantity) for i in items]


@transaction.atomic
def set_cart_item(user, *, product: Product, quantity: int) -> Cart:
    """
    Set the quantity of one product in the user's cart.
    quantity == 0 removes the line.
    """
    cart = get_or_create_cart(user)

    if quantity <= 0:
        CartItem.objects.filter(cart=cart, product=product).delete()
        return cart

    item = CartItem.objects.filter(cart=cart, product=product).first()
    if item is None:
        CartItem.objects.create(cart=cart, product=product, quantity=quantity)
    else:
        item.quantity = quantity
        item.save(update_fields=["quantity"])

    return cart


def clear_cart(user) -> int:
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    if deleted:
        logger.info("Cart cleared", extra={"user_id": str(user.pk), "items": deleted})
    return deleted
