# orders/models/order.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """
    Customer order.

    Key rules:
    - order_number is generated once on first save and never changes
- a gateway payment id is recorded on at most one order (partial unique)
    - line items are frozen snapshots (OrderItem), never live product prices
    - total = subtotal + delivery_charge at creation; never recomputed later
    - status / payment_status / timeline are only moved by orders.services
      and payments.services (never by serializers)
    """

    # ---------------- ORDER STATUS ----------------
    STATUS_PENDING = "Pending"
    STATUS_CONFIRMED = "Confirmed"
    STATUS_PREPARING = "Preparing"
    STATUS_OUT_FOR_DELIVERY = "Out for Delivery"
    STATUS_DELIVERED = "Delivered"
    STATUS_CANCELLED = "Cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PREPARING, "Preparing"),
        (STATUS_OUT_FOR_DELIVERY, "Out for Delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # ---------------- PAYMENT STATUS ----------------
    PAYMENT_PENDING = "Pending"
    PAYMENT_PAID = "Paid"
    PAYMENT_REFUNDED = "Refunded"
    PAYMENT_FAILED = "Failed"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_REFUNDED, "Refunded"),
        (PAYMENT_FAILED, "Failed"),
    ]

    # ---------------- PAYMENT METHOD ----------------
    METHOD_COD = "cod"
    METHOD_RAZORPAY = "razorpay"
    METHOD_UPI = "upi"
    METHOD_CARD = "card"
    METHOD_NETBANKING = "netbanking"

    PAYMENT_METHOD_CHOICES = [
        (METHOD_COD, "Cash on Delivery"),
        (METHOD_RAZORPAY, "Razorpay"),
        (METHOD_UPI, "UPI"),
        (METHOD_CARD, "Card"),
        (METHOD_NETBANKING, "Net Banking"),
    ]

    # Methods whose completion is reported by the payment gateway
    GATEWAY_METHODS = {
        METHOD_RAZORPAY,
        METHOD_UPI,
        METHOD_CARD,
        METHOD_NETBANKING,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=32,
        unique=True,
        blank=True,
        help_text="System-generated public order number",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    # Snapshot: name, phone, address, landmark, city, pincode
    delivery_address = models.JSONField(default=dict)

    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(
        max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING
    )
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Money fields (fixed at creation)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    delivery_charge = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    # Ordered list of {"status", "time", "completed"}
    timeline = models.JSONField(default=list)

    notes = models.TextField(blank=True, default="")

    estimated_delivery = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True, default="")

    rating = models.PositiveSmallIntegerField(null=True, blank=True)
    review = models.TextField(blank=True, default="")

    # Gateway correlation (set only when the gateway reports a payment)
    gateway_order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    gateway_payment_id = models.CharField(max_length=64, blank=True, default="")
    gateway_signature = models.CharField(max_length=128, blank=True, default="")
    payment_error = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
            models.Index(fields=["status"], name="order_status_idx"),
            models.Index(fields=["payment_status"], name="order_payment_status_idx"),
        ]
        constraints = [
            # One gateway payment settles at most one order
            models.UniqueConstraint(
                fields=["gateway_payment_id"],
                condition=~models.Q(gateway_payment_id=""),
                name="order_unique_gateway_payment_id",
            ),
        ]

    @property
    def is_gateway_routed(self) -> bool:
        return self.payment_method in self.GATEWAY_METHODS

    def save(self, *args, **kwargs):
        if not self.order_number:
            prefix = timezone.now().strftime("TB-%Y%m%d")
            self.order_number = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} | {self.total} | {self.status}"
