# products/services/stock_reservation.py

"""
STOCK RESERVATION ENGINE

Purpose:
- Validate and decrement product stock for an order about to be placed.
- Give stock back when an order is cancelled.

HARD RULES:
- Quantities are whole integer units (>= 1).
- ALL lines are validated before ANY row is touched; the caller gets every
  failing line back in one StockError, never just the first one.
- Each product is decremented with ONE guarded UPDATE:
      UPDATE ... SET stock_quantity = stock_quantity - qty
      WHERE id = ... AND in_stock AND stock_quantity >= qty
  so two concurrent checkouts can never both take the last units.
- A product that reaches 0 has in_stock cleared in the same statement.
- reserve() runs in a transaction: losing a race on a later line undoes the
  decrements already applied to earlier lines.
- release() never fails the caller for a missing product (logged + skipped).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import BooleanField, Case, F, Value, When

from products.models import Product

logger = logging.getLogger(__name__)


# ============================================================
# FAILURE REASONS
# ============================================================

REASON_PRODUCT_NOT_FOUND = "product_not_found"
REASON_OUT_OF_STOCK = "out_of_stock"
REASON_INSUFFICIENT_STOCK = "insufficient_stock"


# ============================================================
# VALUE TYPES
# ============================================================

@dataclass(frozen=True)
class ReservationLine:
    product_id: object
    quantity: int


@dataclass(frozen=True)
class ReservedItem:
    """Frozen line snapshot handed to order creation."""

    product_id: uuid.UUID
    name: str
    price: Decimal
    quantity: int
    emoji: str = ""


@dataclass(frozen=True)
class StockFailure:
    product_id: str
    product_name: Optional[str]
    reason: str
    available: int
    requested: int

    @property
    def message(self) -> str:
        if self.reason == REASON_PRODUCT_NOT_FOUND:
            return f"Product {self.product_id} not found"
        if self.reason == REASON_OUT_OF_STOCK:
            return f"{self.product_name} is out of stock"
        return (
            f"Insufficient stock for {self.product_name}. "
            f"Available: {self.available}, Requested: {self.requested}"
        )

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "reason": self.reason,
            "available": self.available,
            "requested": self.requested,
            "message": self.message,
        }


# ============================================================
# DOMAIN ERRORS
# ============================================================

class StockReservationError(Exception):
    pass


class InvalidQuantity(StockReservationError):
    pass


class StockError(StockReservationError):
    """Carries every per-line failure of one reservation attempt."""

    def __init__(self, failures: list[StockFailure]):
        self.failures = list(failures)
        super().__init__("; ".join(f.message for f in self.failures) or "Stock unavailable")


# ============================================================
# HELPERS
# ============================================================

def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if isinstance(value, bool):
        raise InvalidQuantity("quantity must be a whole integer unit")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().isdigit():
        qty = int(value.strip())
    else:
        raise InvalidQuantity("quantity must be a whole integer unit")

    if qty < 1:
        raise InvalidQuantity("quantity must be at least 1")
    return qty


def _parse_product_id(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _merge_lines(lines: Iterable[ReservationLine]) -> dict[str, int]:
    """
    Collapse repeated products into one requested quantity, keeping
    first-seen order so failures read in the same order as the request.
    """
    merged: dict[str, int] = {}
    for line in lines:
        key = str(line.product_id).strip()
        merged[key] = merged.get(key, 0) + _to_int_qty(line.quantity)
    return merged


# ============================================================
# RESERVE
# ============================================================

@transaction.atomic
def reserve(lines: Iterable[ReservationLine]) -> list[ReservedItem]:
    """
    Validate every line, then decrement stock per product.

    Returns the reserved manifest (one ReservedItem per distinct product).
    Raises StockError listing every failing line; nothing is mutated then.
    """
    requested = _merge_lines(lines)
    if not requested:
        raise InvalidQuantity("At least one item is required")

    parsed = {key: _parse_product_id(key) for key in requested}
    products = Product.objects.in_bulk([pid for pid in parsed.values() if pid is not None])

    failures: list[StockFailure] = []
    for key, qty in requested.items():
        product = products.get(parsed[key])

        if product is None:
            failures.append(
                StockFailure(
                    product_id=key,
                    product_name=None,
                    reason=REASON_PRODUCT_NOT_FOUND,
                    available=0,
                    requested=qty,
                )
            )
        elif not product.in_stock:
            failures.append(
                StockFailure(
                    product_id=key,
                    product_name=product.name,
                    reason=REASON_OUT_OF_STOCK,
                    available=int(product.stock_quantity),
                    requested=qty,
                )
            )
        elif product.stock_quantity < qty:
            failures.append(
                StockFailure(
                    product_id=key,
                    product_name=product.name,
                    reason=REASON_INSUFFICIENT_STOCK,
                    available=int(product.stock_quantity),
                    requested=qty,
                )
            )

    if failures:
        raise StockError(failures)

    manifest: list[ReservedItem] = []
    for key, qty in requested.items():
        product = products[parsed[key]]

        updated = Product.objects.filter(
            pk=product.pk,
            in_stock=True,
            stock_quantity__gte=qty,
        ).update(
            stock_quantity=F("stock_quantity") - qty,
            in_stock=Case(
                When(stock_quantity__lte=qty, then=Value(False)),
                default=F("in_stock"),
                output_field=BooleanField(),
            ),
        )

        if updated != 1:
            # Someone else took the stock between validation and update.
            current = Product.objects.filter(pk=product.pk).values("stock_quantity", "in_stock").first()
            available = int(current["stock_quantity"]) if current else 0
            reason = REASON_INSUFFICIENT_STOCK
            if current is None:
                reason = REASON_PRODUCT_NOT_FOUND
            elif not current["in_stock"]:
                reason = REASON_OUT_OF_STOCK

            logger.info(
                "Stock reservation lost a concurrent update",
                extra={"product_id": str(product.pk), "requested": qty, "available": available},
            )
            raise StockError(
                [
                    StockFailure(
                        product_id=key,
                        product_name=product.name,
                        reason=reason,
                        available=available,
                        requested=qty,
                    )
                ]
            )

        logger.info(
            "Stock reserved",
            extra={"product_id": str(product.pk), "quantity": qty},
        )

        manifest.append(
            ReservedItem(
                product_id=product.pk,
                name=product.name,
                price=Decimal(product.price),
                quantity=qty,
                emoji=product.emoji or "",
            )
        )

    return manifest


# ============================================================
# RELEASE
# ============================================================

def release(lines: Iterable[ReservationLine]) -> None:
    """
    Give reserved units back (order cancellation).

    Missing products are skipped with a warning; the cancellation that
    triggered the release still goes through.
    """
    for line in lines:
        qty = int(line.quantity or 0)
        if qty <= 0:
            continue

        product_id = _parse_product_id(line.product_id)
        updated = 0
        if product_id is not None:
            updated = Product.objects.filter(pk=product_id).update(
                stock_quantity=F("stock_quantity") + qty,
                in_stock=True,
            )

        if not updated:
            logger.warning(
                "Stock release skipped: product no longer exists",
                extra={"product_id": str(line.product_id), "quantity": qty},
            )
            continue

        logger.info(
            "Stock released",
            extra={"product_id": str(product_id), "quantity": qty},
        )
