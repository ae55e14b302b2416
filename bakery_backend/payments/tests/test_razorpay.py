# payments/tests/test_razorpay.py

import base64
import io
import json
from decimal import Decimal
from unittest import mock
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase, override_settings

from payments.services.exceptions import PaymentConfigurationError, PaymentGatewayError
from payments.services.gateway import PaymentGateway, get_payment_gateway
from payments.services.razorpay import RAZORPAY_BASE, RazorpayGateway, _to_paise
from payments.tests.fakes import IncompleteGateway


def _respond(urlopen, body=b'{"id": "order_1", "status": "created"}'):
    urlopen.return_value.__enter__.return_value.read.return_value = body


@mock.patch("payments.services.razorpay.urlopen")
class RazorpayRequestTests(SimpleTestCase):
    def setUp(self):
        self.gateway = RazorpayGateway(key_id="rzp_test_key", key_secret="secret")

    def _sent(self, urlopen):
        return urlopen.call_args[0][0]

    def test_create_order_sends_paise_and_basic_auth(self, urlopen):
        _respond(urlopen)

        result = self.gateway.create_order(amount=Decimal("150.50"), currency="inr", receipt="TB-1")

        self.assertEqual(result["id"], "order_1")
        req = self._sent(urlopen)
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.full_url, f"{RAZORPAY_BASE}/orders")
        self.assertEqual(
            json.loads(req.data),
            {"amount": 15050, "currency": "INR", "receipt": "TB-1"},
        )
        token = base64.b64encode(b"rzp_test_key:secret").decode("ascii")
        self.assertEqual(req.get_header("Authorization"), f"Basic {token}")
        self.assertEqual(urlopen.call_args[1]["timeout"], 25)

    def test_receipt_is_cut_to_forty_characters(self, urlopen):
        _respond(urlopen)

        self.gateway.create_order(
            amount=Decimal("10"), currency="INR", receipt="R" * 55, notes={"order_number": "TB-1"}
        )

        body = json.loads(self._sent(urlopen).data)
        self.assertEqual(body["receipt"], "R" * 40)
        self.assertEqual(body["notes"], {"order_number": "TB-1"})

    def test_fetch_payment_quotes_the_id(self, urlopen):
        _respond(urlopen, b'{"id": "pay/1"}')

        self.gateway.fetch_payment("pay/1")

        req = self._sent(urlopen)
        self.assertEqual(req.get_method(), "GET")
        self.assertEqual(req.full_url, f"{RAZORPAY_BASE}/payments/pay%2F1")
        self.assertIsNone(req.data)

    def test_refund_amount_is_optional(self, urlopen):
        _respond(urlopen, b'{"id": "rfnd_1"}')

        self.gateway.refund("pay_1")
        self.assertEqual(json.loads(self._sent(urlopen).data), {})

        self.gateway.refund("pay_1", amount=Decimal("99.99"))
        req = self._sent(urlopen)
        self.assertEqual(req.full_url, f"{RAZORPAY_BASE}/payments/pay_1/refund")
        self.assertEqual(json.loads(req.data), {"amount": 9999})

    def test_http_error_carries_status_and_description(self, urlopen):
        urlopen.side_effect = HTTPError(
            f"{RAZORPAY_BASE}/orders",
            400,
            "Bad Request",
            None,
            io.BytesIO(b'{"error": {"code": "BAD_REQUEST_ERROR", "description": "amount too small"}}'),
        )

        with self.assertLogs("payments.services.razorpay", level="ERROR"):
            with self.assertRaises(PaymentGatewayError) as ctx:
                self.gateway.create_order(amount=Decimal("0.10"), currency="INR", receipt="TB-1")

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn("amount too small", str(ctx.exception))

    def test_unreachable_gateway_is_a_gateway_error(self, urlopen):
        urlopen.side_effect = URLError("timed out")

        with self.assertLogs("payments.services.razorpay", level="ERROR"):
            with self.assertRaises(PaymentGatewayError) as ctx:
                self.gateway.fetch_payment("pay_1")

        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("timed out", str(ctx.exception))

    def test_non_json_response_is_rejected(self, urlopen):
        _respond(urlopen, b"<html>gateway down</html>")

        with self.assertRaises(PaymentGatewayError) as ctx:
            self.gateway.fetch_payment("pay_1")

        self.assertIn("non-JSON", str(ctx.exception))

    def test_list_payload_is_rejected(self, urlopen):
        _respond(urlopen, b"[1, 2]")

        with self.assertRaises(PaymentGatewayError):
            self.gateway.fetch_payment("pay_1")

    def test_missing_keys_never_reach_the_network(self, urlopen):
        gateway = RazorpayGateway(key_id="", key_secret="")

        with self.assertRaises(PaymentConfigurationError):
            gateway.create_order(amount=Decimal("10"), currency="INR", receipt="TB-1")

        urlopen.assert_not_called()


class PaiseConversionTests(SimpleTestCase):
    def test_rounds_half_up(self):
        self.assertEqual(_to_paise(Decimal("150.50")), 15050)
        self.assertEqual(_to_paise(Decimal("0.005")), 1)
        self.assertEqual(_to_paise("12"), 1200)

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            _to_paise("twelve")


class GatewayPortTests(SimpleTestCase):
    def test_adapter_must_implement_every_operation(self):
        with self.assertRaises(TypeError):
            PaymentGateway()
        with self.assertRaises(TypeError):
            IncompleteGateway()

    @override_settings(PAYMENT_GATEWAY_CLASS="payments.tests.fakes.IncompleteGateway")
    def test_incomplete_adapter_is_a_configuration_error(self):
        with self.assertRaises(PaymentConfigurationError):
            get_payment_gateway()

    @override_settings(PAYMENT_GATEWAY_CLASS="payments.tests.fakes.FakeGateway")
    def test_configured_adapter_is_loaded(self):
        self.assertEqual(get_payment_gateway().name, "fake")

    @override_settings(PAYMENT_GATEWAY_CLASS="payments.tests.fakes.NoSuchGateway")
    def test_unknown_adapter_is_a_configuration_error(self):
        with self.assertRaises(PaymentConfigurationError):
            get_payment_gateway()
