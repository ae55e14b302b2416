from .api import CartItemsView, CartView

__all__ = [
    "CartItemsView",
    "CartView",
]
