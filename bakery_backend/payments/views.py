# payments/views.py

"""
PAYMENT API VIEWS

Routes (under /api/payment/):
- POST create-order/      gateway order for an amount (or a local order)
- POST verify/            client callback with signed ids
- POST failure/           client reports a failed payment
- GET  <payment_id>/      payment details from the gateway
- POST refund/            admin refund through the gateway
- POST webhook/           gateway events (signature-checked, AllowAny)
"""

from __future__ import annotations

import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from orders.serializers import OrderSerializer
from orders.views.errors import DOMAIN_ERRORS, domain_error_response
from payments.serializers import (
    CreateGatewayOrderInputSerializer,
    PaymentFailureInputSerializer,
    RefundInputSerializer,
    VerifyPaymentInputSerializer,
    WebhookAckSerializer,
)
from payments.services.gateway_orders import (
    create_gateway_order,
    fetch_payment_details,
    refund_payment,
)
from payments.services.reconciliation import (
    handle_webhook_event,
    reconcile_payment,
    record_payment_failure,
)
from permissions.roles import IsAdmin, Principal

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


def _principal(request) -> Principal:
    return Principal.from_user(request.user)


class CreateGatewayOrderView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Payments"],
        request=CreateGatewayOrderInputSerializer,
        responses={200: OpenApiResponse(description="Gateway order"), 502: OpenApiResponse(description="Gateway error")},
    )
    def post(self, request):
        ser = CreateGatewayOrderInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            result = create_gateway_order(
                _principal(request),
                amount=data.get("amount"),
                currency=data.get("currency") or None,
                receipt=data.get("receipt") or "",
                order_id=data.get("order_id"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "gateway_order_id": result.get("id"),
                "amount": result.get("amount"),
                "currency": result.get("currency"),
                "receipt": result.get("receipt"),
                "key_id": getattr(settings, "RAZORPAY_KEY_ID", ""),
            }
        )


class VerifyPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Payments"],
        request=VerifyPaymentInputSerializer,
        responses={200: OpenApiResponse(description="Payment verified"), 400: OpenApiResponse(description="Signature mismatch")},
    )
    def post(self, request):
        ser = VerifyPaymentInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            result = reconcile_payment(
                data["gateway_order_id"],
                data["payment_id"],
                data["signature"],
                data.get("order_id"),
                principal=_principal(request),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "verified": True,
                "payment_id": result.verified.payment_id,
                "gateway_order_id": result.verified.gateway_order_id,
                "order": OrderSerializer(result.order).data if result.order is not None else None,
            }
        )


class PaymentFailureView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Payments"], request=PaymentFailureInputSerializer, responses={200: OrderSerializer})
    def post(self, request):
        ser = PaymentFailureInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            order = record_payment_failure(
                ser.validated_data["order_id"],
                ser.validated_data["reason"],
                principal=_principal(request),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)


class PaymentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Payments"], responses={200: OpenApiResponse(description="Gateway payment")})
    def get(self, request, payment_id):
        try:
            payment = fetch_payment_details(_principal(request), payment_id)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(payment)


class RefundView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(tags=["Payments (admin)"], request=RefundInputSerializer)
    def post(self, request):
        ser = RefundInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            refund, order = refund_payment(
                _principal(request),
                ser.validated_data["payment_id"],
                amount=ser.validated_data.get("amount"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "refund": refund,
                "order": OrderSerializer(order).data if order is not None else None,
            }
        )


class PaymentWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [JSONParser]
    throttle_classes = [WebhookThrottle]

    @extend_schema(
        tags=["Payments"],
        responses={200: WebhookAckSerializer, 400: OpenApiResponse(description="Invalid signature")},
    )
    def post(self, request, *args, **kwargs):
        raw_body = getattr(request, "body", b"") or b""
        signature = request.headers.get("x-razorpay-signature")
        event_id = request.headers.get("x-razorpay-event-id")

        logger.info("Payment webhook received", extra={"event_id": event_id})

        try:
            event, processed = handle_webhook_event(raw_body, signature, event_id, request.data or {})
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {"ok": True, "duplicate": not processed, "outcome": event.outcome},
            status=status.HTTP_200_OK,
        )
