# products/tests/test_stock.py

import uuid
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from products.models import Product
from products.services.stock_reservation import (
    REASON_INSUFFICIENT_STOCK,
    REASON_OUT_OF_STOCK,
    REASON_PRODUCT_NOT_FOUND,
    InvalidQuantity,
    ReservationLine,
    StockError,
    release,
    reserve,
)


class StockReservationTests(TestCase):
    """
    Stock reservation tests.

    GUARANTEES:
    - Stock quantities are never negative
    - All lines are validated before anything is decremented
    - A lost race never oversells and undoes earlier lines
    """

    def setUp(self):
        self.cake = Product.objects.create(
            name="Red Velvet Cake",
            price=Decimal("550.00"),
            emoji="🍰",
            stock_quantity=5,
        )
        self.bread = Product.objects.create(
            name="Multigrain Bread",
            price=Decimal("120.00"),
            emoji="🍞",
            stock_quantity=2,
        )

    def _stock(self, product):
        product.refresh_from_db()
        return product.stock_quantity, product.in_stock

    def test_reserve_decrements_and_returns_snapshot(self):
        manifest = reserve(
            [
                ReservationLine(self.cake.id, 3),
                ReservationLine(self.bread.id, 1),
            ]
        )

        self.assertEqual(self._stock(self.cake), (2, True))
        self.assertEqual(self._stock(self.bread), (1, True))

        self.assertEqual(len(manifest), 2)
        self.assertEqual(manifest[0].product_id, self.cake.id)
        self.assertEqual(manifest[0].name, "Red Velvet Cake")
        self.assertEqual(manifest[0].price, Decimal("550.00"))
        self.assertEqual(manifest[0].quantity, 3)
        self.assertEqual(manifest[0].emoji, "🍰")

    def test_reserving_last_units_clears_in_stock(self):
        reserve([ReservationLine(self.bread.id, 2)])

        self.assertEqual(self._stock(self.bread), (0, False))

    def test_duplicate_lines_are_merged(self):
        manifest = reserve(
            [
                ReservationLine(self.cake.id, 1),
                ReservationLine(str(self.cake.id), 2),
            ]
        )

        self.assertEqual(len(manifest), 1)
        self.assertEqual(manifest[0].quantity, 3)
        self.assertEqual(self._stock(self.cake), (2, True))

    def test_batch_validation_reports_every_failure_and_mutates_nothing(self):
        sold_out = Product.objects.create(name="Eclair", price=Decimal("70.00"), stock_quantity=0)
        missing_id = uuid.uuid4()

        with self.assertRaises(StockError) as ctx:
            reserve(
                [
                    ReservationLine(self.cake.id, 1),
                    ReservationLine(self.bread.id, 5),
                    ReservationLine(sold_out.id, 1),
                    ReservationLine(missing_id, 1),
                ]
            )

        reasons = [(f.product_name, f.reason) for f in ctx.exception.failures]
        self.assertEqual(
            reasons,
            [
                ("Multigrain Bread", REASON_INSUFFICIENT_STOCK),
                ("Eclair", REASON_OUT_OF_STOCK),
                (None, REASON_PRODUCT_NOT_FOUND),
            ],
        )

        shortage = ctx.exception.failures[0]
        self.assertEqual(shortage.available, 2)
        self.assertEqual(shortage.requested, 5)
        self.assertIn("Available: 2, Requested: 5", shortage.message)

        # The valid line was not decremented either
        self.assertEqual(self._stock(self.cake), (5, True))
        self.assertEqual(self._stock(self.bread), (2, True))

    def test_manually_deactivated_product_is_out_of_stock(self):
        self.cake.in_stock = False
        self.cake.save()

        with self.assertRaises(StockError) as ctx:
            reserve([ReservationLine(self.cake.id, 1)])

        self.assertEqual(ctx.exception.failures[0].reason, REASON_OUT_OF_STOCK)
        self.assertEqual(self._stock(self.cake), (5, False))

    def test_malformed_product_id_is_not_found(self):
        with self.assertRaises(StockError) as ctx:
            reserve([ReservationLine("not-a-uuid", 1)])

        self.assertEqual(ctx.exception.failures[0].reason, REASON_PRODUCT_NOT_FOUND)

    def test_invalid_quantities_rejected(self):
        for bad in (0, -1, True, 1.5, "two", None):
            with self.subTest(quantity=bad):
                with self.assertRaises(InvalidQuantity):
                    reserve([ReservationLine(self.cake.id, bad)])

        self.assertEqual(self._stock(self.cake), (5, True))

    def test_sequential_reservations_exhaust_but_never_exceed_stock(self):
        outcomes = []
        for _ in range(4):
            try:
                reserve([ReservationLine(self.cake.id, 2)])
                outcomes.append("ok")
            except StockError:
                outcomes.append("rejected")

        self.assertEqual(outcomes, ["ok", "ok", "rejected", "rejected"])
        self.assertEqual(self._stock(self.cake), (1, True))

    def test_stale_read_loses_guarded_update(self):
        """
        Another checkout takes the stock after our validation read:
        the guarded UPDATE matches no row and nothing oversells.
        """
        real_in_bulk = Product.objects.in_bulk

        def stale_in_bulk(ids):
            snapshot = real_in_bulk(ids)
            Product.objects.filter(pk=self.bread.pk).update(stock_quantity=1)
            return snapshot

        with mock.patch.object(Product.objects, "in_bulk", side_effect=stale_in_bulk):
            with self.assertRaises(StockError) as ctx:
                reserve(
                    [
                        ReservationLine(self.cake.id, 2),
                        ReservationLine(self.bread.id, 2),
                    ]
                )

        failure = ctx.exception.failures[0]
        self.assertEqual(failure.reason, REASON_INSUFFICIENT_STOCK)
        self.assertEqual(failure.available, 1)

        # Earlier line rolled back with the failed reservation
        self.assertEqual(self._stock(self.cake), (5, True))

    def test_release_restores_quantity_and_flag(self):
        reserve([ReservationLine(self.bread.id, 2)])
        self.assertEqual(self._stock(self.bread), (0, False))

        release([ReservationLine(self.bread.id, 2)])

        self.assertEqual(self._stock(self.bread), (2, True))

    def test_release_skips_missing_product(self):
        with self.assertLogs("products.services.stock_reservation", level="WARNING"):
            release(
                [
                    ReservationLine(uuid.uuid4(), 3),
                    ReservationLine(self.cake.id, 1),
                ]
            )

        self.assertEqual(self._stock(self.cake), (6, True))

    def test_stock_never_negative_across_reserve_release_cycles(self):
        for qty in (3, 2):
            reserve([ReservationLine(self.cake.id, qty)])
            quantity, in_stock = self._stock(self.cake)
            self.assertGreaterEqual(quantity, 0)
            if quantity == 0:
                self.assertFalse(in_stock)

        with self.assertRaises(StockError):
            reserve([ReservationLine(self.cake.id, 1)])

        release([ReservationLine(self.cake.id, 5)])
        self.assertEqual(self._stock(self.cake), (5, True))
