# orders/services/exceptions.py

"""
ORDER SERVICE ERRORS

Centralized domain errors for order services.
"""


class OrderServiceError(Exception):
    """Base exception for all order service failures."""


class OrderValidationError(OrderServiceError):
    """Raised when order input is malformed or inconsistent."""


class OrderNotFound(OrderServiceError):
    """Raised when the referenced order does not exist."""


class OrderForbidden(OrderServiceError):
    """Raised when the acting principal may not touch the order."""


class InvalidStatus(OrderServiceError):
    """Raised when a requested status is unknown or not reachable."""


class CannotCancel(OrderServiceError):
    """Raised when cancelling an order that already finished."""

    def __init__(self, current_status: str):
        self.current_status = current_status
        super().__init__(f"Cannot cancel order with status: {current_status}")


class InvalidOrderState(OrderServiceError):
    """Raised when an operation does not fit the order's current state."""
