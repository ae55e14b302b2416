# payments/models/webhook_event.py

import uuid

from django.db import models


class PaymentWebhookEvent(models.Model):
    """
    One row per gateway webhook delivery.

    Idempotency rule:
    - event_id is unique (gateway event id header)
    - a redelivered event finds its row and is acknowledged without
      touching any order again
    """

    OUTCOME_RECONCILED = "reconciled"
    OUTCOME_FAILURE_RECORDED = "failure_recorded"
    OUTCOME_IGNORED = "ignored"

    OUTCOME_CHOICES = [
        (OUTCOME_RECONCILED, "Reconciled"),
        (OUTCOME_FAILURE_RECORDED, "Failure recorded"),
        (OUTCOME_IGNORED, "Ignored"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_id = models.CharField(
        max_length=128,
        unique=True,
        help_text="Gateway event id. Must be unique for idempotency.",
    )
    event_type = models.CharField(max_length=64, blank=True, default="")

    gateway_order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    gateway_payment_id = models.CharField(max_length=64, blank=True, default="")

    outcome = models.CharField(max_length=32, choices=OUTCOME_CHOICES, default=OUTCOME_IGNORED)
    payload = models.JSONField(default=dict, blank=True)

    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-received_at"]

    def __str__(self):
        return f"{self.event_type} | {self.event_id} | {self.outcome}"
