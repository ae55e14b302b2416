# orders/tests/test_timeline.py

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase, override_settings

from orders.services import timeline as tl

IST = ZoneInfo("Asia/Kolkata")


@override_settings(TIME_ZONE="Asia/Kolkata")
class TimelineRulesTests(SimpleTestCase):
    def setUp(self):
        self.placed = datetime(2024, 5, 1, 9, 5, tzinfo=IST)
        self.eta = self.placed + timedelta(minutes=45)

    def _by_status(self, steps):
        return {s.status: s for s in steps}

    def test_display_time_is_twelve_hour_local_clock(self):
        self.assertEqual(tl.format_display_time(self.placed), "09:05 AM")
        self.assertEqual(
            tl.format_display_time(datetime(2024, 5, 1, 10, 0, tzinfo=ZoneInfo("UTC"))),
            "03:30 PM",
        )

    def test_initial_timeline_for_unpaid_order(self):
        steps = tl.initial_timeline(self.placed, confirmed=False, estimated_delivery=self.eta)

        self.assertEqual([s.status for s in steps], list(tl.STEPS))
        self.assertEqual(steps[0], tl.TimelineStep("Order Placed", "09:05 AM", True))
        self.assertEqual(steps[1], tl.TimelineStep("Confirmed", tl.PENDING_TIME, False))
        self.assertEqual(steps[4].time, "09:50 AM (Est.)")
        self.assertFalse(steps[4].completed)

    def test_initial_timeline_for_paid_order_is_confirmed(self):
        steps = tl.initial_timeline(self.placed, confirmed=True, estimated_delivery=self.eta)

        self.assertEqual(steps[1], tl.TimelineStep("Confirmed", "09:05 AM", True))
        self.assertFalse(steps[2].completed)

    def test_advance_completes_every_earlier_step(self):
        steps = tl.initial_timeline(self.placed, confirmed=False, estimated_delivery=self.eta)
        later = self.placed + timedelta(hours=1)

        advanced = self._by_status(tl.advance_timeline(steps, "Out for Delivery", later))

        self.assertTrue(advanced["Confirmed"].completed)
        self.assertTrue(advanced["Preparing"].completed)
        self.assertEqual(advanced["Out for Delivery"], tl.TimelineStep("Out for Delivery", "10:05 AM", True))
        self.assertFalse(advanced["Delivered"].completed)
        self.assertEqual(advanced["Delivered"].time, "09:50 AM (Est.)")
        self.assertEqual(advanced["Order Placed"].time, "09:05 AM")

    def test_advance_keeps_time_of_completed_target(self):
        steps = tl.initial_timeline(self.placed, confirmed=True, estimated_delivery=self.eta)

        advanced = tl.advance_timeline(steps, "Confirmed", self.placed + timedelta(hours=2))

        self.assertEqual(advanced, steps)

    def test_pending_does_not_touch_timeline(self):
        steps = tl.initial_timeline(self.placed, confirmed=False, estimated_delivery=self.eta)

        self.assertEqual(tl.advance_timeline(steps, "Pending", self.placed), steps)

    def test_stored_form_round_trip(self):
        steps = tl.initial_timeline(self.placed, confirmed=False, estimated_delivery=self.eta)
        raw = tl.dump_timeline(steps)

        self.assertEqual(raw[0], {"status": "Order Placed", "time": "09:05 AM", "completed": True})
        self.assertEqual(tl.load_timeline(raw), steps)
