# orders/models/order_item.py

import uuid
from decimal import Decimal

from django.db import models

from .order import Order


class OrderItem(models.Model):
    """
    Frozen line snapshot taken at reservation time.

    product_id is a plain reference (not a FK): the catalog row may later be
    edited or deleted without touching historical orders.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )

    line_no = models.PositiveSmallIntegerField(default=0)

    product_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField()
    emoji = models.CharField(max_length=16, blank=True, default="")

    class Meta:
        ordering = ["line_no"]

    @property
    def line_total(self) -> Decimal:
        return (self.price or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    def __str__(self):
        return f"{self.order_id} | {self.name} x {self.quantity}"
