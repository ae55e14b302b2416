from .cart_service import clear_cart, get_cart_lines, get_or_create_cart, set_cart_item

__all__ = [
    "clear_cart",
    "get_cart_lines",
    "get_or_create_cart",
    "set_cart_item",
]
