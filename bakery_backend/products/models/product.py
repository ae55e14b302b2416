# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable bakery item.

    STOCK MODEL (IMPORTANT):
    - stock_quantity is a plain non-negative counter on the row
    - in_stock is cached from the counter but an admin may force it off
    - every write path must keep: stock_quantity <= 0  =>  in_stock is False

    Checkout never writes through save(); it uses guarded UPDATEs in
    products.services.stock_reservation.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=64, blank=True, default="", db_index=True)

    # Current selling price (line items snapshot it at order time)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    # Display tag shown next to the name on the storefront
    emoji = models.CharField(max_length=16, blank=True, default="")

    stock_quantity = models.PositiveIntegerField(default=0)
    in_stock = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category", "in_stock"], name="product_category_stock_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.stock_quantity})"

    def clean(self):
        if self.price is None or Decimal(self.price) < Decimal("0.00"):
            raise ValidationError("Price cannot be negative")

    def save(self, *args, **kwargs):
        if self.stock_quantity is None or self.stock_quantity <= 0:
            self.stock_quantity = 0
            self.in_stock = False

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "stock_quantity" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"in_stock"}

        super().save(*args, **kwargs)
