# payments/services/exceptions.py

"""
PAYMENT SERVICE ERRORS

Centralized domain errors for payment services.
"""


class PaymentServiceError(Exception):
    """Base exception for all payment service failures."""


class SignatureMismatch(PaymentServiceError):
    """Raised when a gateway signature does not match the recomputed one."""


class WebhookSignatureMismatch(SignatureMismatch):
    """Raised when a webhook body signature does not verify."""


class PaymentConfigurationError(PaymentServiceError):
    """Raised when gateway keys or the gateway class are not configured."""


class PaymentGatewayError(PaymentServiceError):
    """Raised when the gateway cannot be reached or rejects a call."""

    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
