# orders/tests/test_order_service.py

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings

from cart.services import get_cart_lines, set_cart_item
from orders.models import Order
from orders.services import order_service
from orders.services.exceptions import (
    CannotCancel,
    InvalidOrderState,
    InvalidStatus,
    OrderForbidden,
    OrderNotFound,
    OrderValidationError,
)
from orders.services.order_service import PaymentClaim
from payments.services.exceptions import SignatureMismatch
from payments.services.signatures import compute_payment_signature
from permissions.roles import ROLE_ADMIN, Principal
from products.models import Product
from products.services.stock_reservation import ReservationLine, StockError

User = get_user_model()

ADDRESS = {
    "name": "Asha",
    "phone": "9999999999",
    "address": "12 Baker Street",
    "city": "Pune",
    "pincode": "411001",
}


@override_settings(RAZORPAY_KEY_SECRET="test_razorpay_secret")
class OrderServiceTestBase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="customer@example.com", password="pass")
        self.stranger = User.objects.create_user(email="stranger@example.com", password="pass")
        self.admin = User.objects.create_user(email="admin@example.com", password="pass", role=ROLE_ADMIN)

        self.me = Principal.from_user(self.customer)
        self.other = Principal.from_user(self.stranger)
        self.staff = Principal.from_user(self.admin)

        self.cake = Product.objects.create(
            name="Chocolate Truffle Cake",
            price=Decimal("600.00"),
            emoji="🎂",
            stock_quantity=5,
        )
        self.croissant = Product.objects.create(
            name="Butter Croissant",
            price=Decimal("80.00"),
            emoji="🥐",
            stock_quantity=10,
        )

    def _stock(self, product):
        product.refresh_from_db()
        return product.stock_quantity

    def _place(self, principal=None, *, lines=None, method=Order.METHOD_COD, claim=None, subtotal=None):
        lines = lines if lines is not None else [ReservationLine(self.cake.id, 2)]
        if subtotal is None:
            subtotal = Decimal("1200.00")
        return order_service.create_order(
            principal or self.me,
            items=lines,
            delivery_address=ADDRESS,
            payment_method=method,
            subtotal=subtotal,
            delivery_charge=Decimal("40.00"),
            total=Decimal(subtotal) + Decimal("40.00"),
            payment_claim=claim,
        )

    def _claim(self, gateway_order_id="order_rzp_1", payment_id="pay_rzp_1"):
        return PaymentClaim(
            gateway_order_id=gateway_order_id,
            payment_id=payment_id,
            signature=compute_payment_signature(gateway_order_id, payment_id),
        )


class CreateOrderTests(OrderServiceTestBase):
    def test_cod_order_reserves_stock_and_snapshots_items(self):
        order = self._place()

        self.assertEqual(self._stock(self.cake), 3)
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)
        self.assertRegex(order.order_number, r"^TB-\d{8}-[0-9A-F]{8}$")
        self.assertEqual(order.total, Decimal("1240.00"))

        item = order.items.get()
        self.assertEqual(item.product_id, self.cake.id)
        self.assertEqual(item.name, "Chocolate Truffle Cake")
        self.assertEqual(item.price, Decimal("600.00"))
        self.assertEqual(item.quantity, 2)

        timeline = order.timeline
        self.assertEqual([s["status"] for s in timeline][0], "Order Placed")
        self.assertTrue(timeline[0]["completed"])
        self.assertFalse(timeline[1]["completed"])
        self.assertTrue(timeline[4]["time"].endswith("(Est.)"))
        self.assertIsNotNone(order.estimated_delivery)

    def test_item_snapshot_survives_price_change(self):
        order = self._place()

        self.cake.price = Decimal("750.00")
        self.cake.save()

        self.assertEqual(order.items.get().price, Decimal("600.00"))

    def test_insufficient_stock_rejects_whole_order(self):
        with self.assertRaises(StockError) as ctx:
            self._place(
                lines=[
                    ReservationLine(self.croissant.id, 2),
                    ReservationLine(self.cake.id, 9),
                ]
            )

        self.assertEqual(len(ctx.exception.failures), 1)
        self.assertEqual(ctx.exception.failures[0].available, 5)
        self.assertEqual(self._stock(self.croissant), 10)
        self.assertEqual(self._stock(self.cake), 5)
        self.assertFalse(Order.objects.exists())

    def test_total_must_match_subtotal_plus_delivery(self):
        with self.assertRaises(OrderValidationError):
            order_service.create_order(
                self.me,
                items=[ReservationLine(self.cake.id, 1)],
                delivery_address=ADDRESS,
                payment_method=Order.METHOD_COD,
                subtotal=Decimal("600.00"),
                delivery_charge=Decimal("40.00"),
                total=Decimal("600.00"),
            )
        self.assertEqual(self._stock(self.cake), 5)

    def test_unknown_payment_method_rejected(self):
        with self.assertRaises(OrderValidationError):
            self._place(method="bitcoin")

    def test_missing_address_rejected(self):
        with self.assertRaises(OrderValidationError):
            order_service.create_order(
                self.me,
                items=[ReservationLine(self.cake.id, 1)],
                delivery_address={},
                payment_method=Order.METHOD_COD,
                subtotal="600.00",
                delivery_charge="0.00",
                total="600.00",
            )

    def test_anonymous_caller_is_forbidden(self):
        with self.assertRaises(OrderForbidden):
            order_service.create_order(
                None,
                items=[ReservationLine(self.cake.id, 1)],
                delivery_address=ADDRESS,
                payment_method=Order.METHOD_COD,
                subtotal="600.00",
                delivery_charge="0.00",
                total="600.00",
            )

    def test_empty_items_fall_back_to_cart_and_clear_it(self):
        set_cart_item(self.customer, product=self.croissant, quantity=3)

        order = self._place(lines=[], subtotal=Decimal("240.00"))

        self.assertEqual(order.items.get().product_id, self.croissant.id)
        self.assertEqual(self._stock(self.croissant), 7)
        self.assertEqual(get_cart_lines(self.customer), [])

    def test_empty_items_and_empty_cart_rejected(self):
        with self.assertRaises(OrderValidationError):
            self._place(lines=[])

    def test_failure_after_reservation_rolls_stock_back(self):
        with mock.patch(
            "orders.services.order_service.clear_cart",
            side_effect=RuntimeError("cart store down"),
        ):
            with self.assertRaises(RuntimeError):
                self._place()

        self.assertEqual(self._stock(self.cake), 5)
        self.assertFalse(Order.objects.exists())

    def test_razorpay_order_with_valid_claim_is_paid_and_confirmed(self):
        order = self._place(method=Order.METHOD_RAZORPAY, claim=self._claim())

        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(order.gateway_order_id, "order_rzp_1")
        self.assertEqual(order.gateway_payment_id, "pay_rzp_1")
        self.assertTrue(order.timeline[1]["completed"])

    def test_razorpay_order_requires_claim(self):
        with self.assertRaises(OrderValidationError):
            self._place(method=Order.METHOD_RAZORPAY)

    def test_tampered_claim_is_rejected_before_stock_moves(self):
        claim = self._claim()
        tampered = PaymentClaim(
            gateway_order_id=claim.gateway_order_id,
            payment_id="pay_rzp_2",
            signature=claim.signature,
        )

        with self.assertRaises(SignatureMismatch):
            self._place(method=Order.METHOD_RAZORPAY, claim=tampered)

        self.assertEqual(self._stock(self.cake), 5)
        self.assertFalse(Order.objects.exists())

    def test_claim_on_cod_order_rejected(self):
        with self.assertRaises(OrderValidationError):
            self._place(claim=self._claim())

    def test_upi_order_without_claim_waits_for_payment(self):
        order = self._place(method=Order.METHOD_UPI)

        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)

    def test_payment_claim_cannot_pay_for_a_second_order(self):
        first = self._place(method=Order.METHOD_RAZORPAY, claim=self._claim())

        with self.assertRaises(InvalidOrderState):
            self._place(
                method=Order.METHOD_RAZORPAY,
                claim=self._claim(),
                lines=[ReservationLine(self.croissant.id, 4)],
                subtotal=Decimal("320.00"),
            )

        self.assertEqual(list(Order.objects.values_list("pk", flat=True)), [first.pk])
        self.assertEqual(self._stock(self.croissant), 10)

    def test_payment_id_is_unique_across_orders(self):
        self._place(method=Order.METHOD_RAZORPAY, claim=self._claim())
        second = self._place(lines=[ReservationLine(self.croissant.id, 1)], subtotal=Decimal("80.00"))

        with self.assertRaises(IntegrityError), transaction.atomic():
            Order.objects.filter(pk=second.pk).update(gateway_payment_id="pay_rzp_1")

        self.assertEqual(
            Order.objects.filter(gateway_payment_id="").count(),
            1,
        )


class ReadOrderTests(OrderServiceTestBase):
    def test_owner_and_admin_can_read(self):
        order = self._place()

        self.assertEqual(order_service.get_order(self.me, order.id).pk, order.pk)
        self.assertEqual(order_service.get_order(self.staff, str(order.id)).pk, order.pk)

    def test_other_customer_is_forbidden(self):
        order = self._place()

        with self.assertRaises(OrderForbidden):
            order_service.get_order(self.other, order.id)

    def test_unknown_or_malformed_id_is_not_found(self):
        with self.assertRaises(OrderNotFound):
            order_service.get_order(self.me, "not-a-uuid")
        with self.assertRaises(OrderNotFound):
            order_service.get_order(self.me, "00000000-0000-0000-0000-000000000000")

    def test_list_orders_is_scoped_to_owner(self):
        mine = self._place()
        self._place(principal=self.other, lines=[ReservationLine(self.croissant.id, 1)], subtotal=Decimal("80.00"))

        self.assertEqual([o.pk for o in order_service.list_orders(self.me)], [mine.pk])
        self.assertEqual(order_service.list_all_orders(self.staff).count(), 2)

        with self.assertRaises(OrderForbidden):
            order_service.list_all_orders(self.me)


class CancelOrderTests(OrderServiceTestBase):
    def test_cancel_restores_stock(self):
        order = self._place(lines=[ReservationLine(self.cake.id, 3)], subtotal=Decimal("1800.00"))
        self.assertEqual(self._stock(self.cake), 2)

        cancelled = order_service.cancel_order(self.me, order.id)

        self.assertEqual(self._stock(self.cake), 5)
        self.assertEqual(cancelled.status, Order.STATUS_CANCELLED)
        self.assertEqual(cancelled.cancel_reason, "Cancelled by user")
        self.assertIsNotNone(cancelled.cancelled_at)
        self.assertEqual(cancelled.payment_status, Order.PAYMENT_PENDING)

    def test_cancel_restores_exact_quantities_despite_other_orders(self):
        order = self._place(
            lines=[ReservationLine(self.cake.id, 2), ReservationLine(self.croissant.id, 1)],
            subtotal=Decimal("1280.00"),
        )

        other = self._place(
            principal=self.other,
            lines=[ReservationLine(self.cake.id, 1), ReservationLine(self.croissant.id, 4)],
            subtotal=Decimal("920.00"),
        )
        order_service.cancel_order(self.other, other.id)
        self._place(
            principal=self.other,
            lines=[ReservationLine(self.croissant.id, 3)],
            subtotal=Decimal("240.00"),
        )

        cake_before = self._stock(self.cake)
        croissant_before = self._stock(self.croissant)
        self.assertEqual((cake_before, croissant_before), (3, 6))

        order_service.cancel_order(self.me, order.id)

        self.assertEqual(self._stock(self.cake) - cake_before, 2)
        self.assertEqual(self._stock(self.croissant) - croissant_before, 1)

    def test_cancel_keeps_given_reason(self):
        order = self._place()

        cancelled = order_service.cancel_order(self.staff, order.id, reason="  Shop closed  ")

        self.assertEqual(cancelled.cancel_reason, "Shop closed")

    def test_cancelling_paid_order_marks_refund(self):
        order = self._place(method=Order.METHOD_RAZORPAY, claim=self._claim())

        cancelled = order_service.cancel_order(self.me, order.id)

        self.assertEqual(cancelled.payment_status, Order.PAYMENT_REFUNDED)

    def test_cancel_twice_is_rejected_and_stock_not_double_released(self):
        order = self._place()
        order_service.cancel_order(self.me, order.id)

        with self.assertRaises(CannotCancel) as ctx:
            order_service.cancel_order(self.me, order.id)

        self.assertEqual(ctx.exception.current_status, Order.STATUS_CANCELLED)
        self.assertEqual(self._stock(self.cake), 5)

    def test_delivered_order_cannot_be_cancelled(self):
        order = self._place()
        order_service.transition_status(self.staff, order.id, Order.STATUS_DELIVERED)

        with self.assertRaises(CannotCancel):
            order_service.cancel_order(self.me, order.id)
        self.assertEqual(self._stock(self.cake), 3)

    def test_stranger_cannot_cancel(self):
        order = self._place()

        with self.assertRaises(OrderForbidden):
            order_service.cancel_order(self.other, order.id)
        self.assertEqual(self._stock(self.cake), 3)

    def test_cancel_skips_deleted_product(self):
        order = self._place(
            lines=[ReservationLine(self.cake.id, 1), ReservationLine(self.croissant.id, 2)],
            subtotal=Decimal("760.00"),
        )
        self.croissant.delete()

        with self.assertLogs("products.services.stock_reservation", level="WARNING"):
            cancelled = order_service.cancel_order(self.me, order.id)

        self.assertEqual(cancelled.status, Order.STATUS_CANCELLED)
        self.assertEqual(self._stock(self.cake), 5)


class TransitionStatusTests(OrderServiceTestBase):
    def test_admin_moves_order_forward_and_timeline_catches_up(self):
        order = self._place()

        updated = order_service.transition_status(self.staff, order.id, Order.STATUS_OUT_FOR_DELIVERY)

        self.assertEqual(updated.status, Order.STATUS_OUT_FOR_DELIVERY)
        completed = [s["status"] for s in updated.timeline if s["completed"]]
        self.assertEqual(completed, ["Order Placed", "Confirmed", "Preparing", "Out for Delivery"])

    def test_delivered_sets_delivery_time(self):
        order = self._place()

        updated = order_service.transition_status(self.staff, order.id, Order.STATUS_DELIVERED)

        self.assertIsNotNone(updated.delivered_at)
        self.assertTrue(all(s["completed"] for s in updated.timeline))
        self.assertFalse(updated.timeline[4]["time"].endswith("(Est.)"))

    def test_customer_cannot_transition(self):
        order = self._place()

        with self.assertRaises(OrderForbidden):
            order_service.transition_status(self.me, order.id, Order.STATUS_PREPARING)

    def test_unknown_status_is_invalid(self):
        order = self._place()

        with self.assertRaises(InvalidStatus):
            order_service.transition_status(self.staff, order.id, "Shipped")
        with self.assertRaises(InvalidStatus):
            order_service.transition_status(self.staff, order.id, Order.STATUS_CANCELLED)

    def test_terminal_orders_are_immutable(self):
        order = self._place()
        order_service.cancel_order(self.me, order.id)

        with self.assertRaises(InvalidStatus):
            order_service.transition_status(self.staff, order.id, Order.STATUS_PREPARING)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CANCELLED)


class ReviewTests(OrderServiceTestBase):
    def _delivered(self):
        order = self._place()
        return order_service.transition_status(self.staff, order.id, Order.STATUS_DELIVERED)

    def test_owner_reviews_delivered_order(self):
        order = self._delivered()

        reviewed = order_service.add_review(self.me, order.id, 5, " Lovely cake ")

        self.assertEqual(reviewed.rating, 5)
        self.assertEqual(reviewed.review, "Lovely cake")

    def test_zero_rating_is_allowed(self):
        order = self._delivered()

        self.assertEqual(order_service.add_review(self.me, order.id, 0).rating, 0)

    def test_rating_out_of_range_rejected(self):
        order = self._delivered()

        for bad in (6, -1, "five", True):
            with self.assertRaises(OrderValidationError):
                order_service.add_review(self.me, order.id, bad)

    def test_fractional_rating_is_rejected_not_truncated(self):
        order = self._delivered()

        for bad in (3.7, 4.0, "4.5", "--3", ""):
            with self.assertRaises(OrderValidationError):
                order_service.add_review(self.me, order.id, bad)

        order.refresh_from_db()
        self.assertIsNone(order.rating)

    def test_rating_given_as_digit_string_is_accepted(self):
        order = self._delivered()

        self.assertEqual(order_service.add_review(self.me, order.id, " 4 ").rating, 4)

    def test_undelivered_order_cannot_be_reviewed(self):
        order = self._place()

        with self.assertRaises(InvalidOrderState):
            order_service.add_review(self.me, order.id, 4)

    def test_admin_cannot_review_someone_elses_order(self):
        order = self._delivered()

        with self.assertRaises(OrderForbidden):
            order_service.add_review(self.staff, order.id, 4)
