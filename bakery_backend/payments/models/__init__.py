from .webhook_event import PaymentWebhookEvent

__all__ = [
    "PaymentWebhookEvent",
]
