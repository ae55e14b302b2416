# orders/views/errors.py

"""
API ERROR NORMALIZATION

Canonical error body:
    {"error": {"code": "...", "message": "...", "details": [...]}}

Domain errors raised by order / payment / stock services are mapped to a
status code here; anything else propagates (500).
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from orders.services.exceptions import (
    CannotCancel,
    InvalidOrderState,
    InvalidStatus,
    OrderForbidden,
    OrderNotFound,
    OrderServiceError,
    OrderValidationError,
)
from payments.services.exceptions import (
    PaymentConfigurationError,
    PaymentGatewayError,
    PaymentServiceError,
    SignatureMismatch,
)
from products.services.stock_reservation import (
    InvalidQuantity,
    StockError,
    StockReservationError,
)

logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (OrderServiceError, PaymentServiceError, StockReservationError)

# Most specific first
_ERROR_MAP = (
    (StockError, "STOCK_UNAVAILABLE", status.HTTP_409_CONFLICT),
    (InvalidQuantity, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
    (OrderValidationError, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
    (SignatureMismatch, "SIGNATURE_MISMATCH", status.HTTP_400_BAD_REQUEST),
    (OrderForbidden, "FORBIDDEN", status.HTTP_403_FORBIDDEN),
    (OrderNotFound, "ORDER_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (InvalidStatus, "INVALID_STATUS", status.HTTP_400_BAD_REQUEST),
    (CannotCancel, "CANNOT_CANCEL", status.HTTP_409_CONFLICT),
    (InvalidOrderState, "INVALID_STATE", status.HTTP_409_CONFLICT),
    (PaymentGatewayError, "PAYMENT_GATEWAY_ERROR", status.HTTP_502_BAD_GATEWAY),
    (PaymentConfigurationError, "PAYMENT_NOT_CONFIGURED", status.HTTP_503_SERVICE_UNAVAILABLE),
    (OrderServiceError, "ORDER_ERROR", status.HTTP_400_BAD_REQUEST),
    (PaymentServiceError, "PAYMENT_ERROR", status.HTTP_400_BAD_REQUEST),
    (StockReservationError, "STOCK_ERROR", status.HTTP_400_BAD_REQUEST),
)


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return Response({"error": body}, status=http_status)


def domain_error_response(exc: Exception):
    for exc_type, code, http_status in _ERROR_MAP:
        if isinstance(exc, exc_type):
            details = None
            message = str(exc)
            if isinstance(exc, StockError):
                details = [f.as_dict() for f in exc.failures]
                message = "Some items are not available"
            if http_status >= 500:
                logger.error("Payment service failure", extra={"code": code, "error": message})
            return error_response(code=code, message=message, http_status=http_status, details=details)
    raise exc
