from .cart import CartItemSerializer, CartSerializer, SetCartItemInputSerializer

__all__ = [
    "CartItemSerializer",
    "CartSerializer",
    "SetCartItemInputSerializer",
]
