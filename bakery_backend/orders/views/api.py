# orders/views/api.py

"""
ORDER API VIEWS

Routes (under /api/orders/):
- POST /create/          place an order (customer)
- GET  /                 my orders
- GET  /<id>/            order detail (owner or admin)
- PUT  /<id>/cancel/     cancel (owner or admin)
- POST /<id>/review/     rate a delivered order (owner)
- PUT  /<id>/status/     move status (admin)
- GET  /admin/all/       all orders, filterable (admin)

Views stay thin: request shape is validated here, every rule lives in
orders.services.order_service.
"""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from orders.filters import AdminOrderFilter
from orders.serializers import (
    AdminOrderSerializer,
    CancelOrderInputSerializer,
    CreateOrderInputSerializer,
    OrderSerializer,
    ReviewInputSerializer,
    StatusInputSerializer,
)
from orders.services import order_service
from orders.services.order_service import PaymentClaim
from orders.views.errors import DOMAIN_ERRORS, domain_error_response
from permissions.roles import IsAdmin, Principal
from products.services.stock_reservation import ReservationLine

logger = logging.getLogger(__name__)


class OrderWriteThrottle(UserRateThrottle):
    """
    For order mutations (create / cancel / review).
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['order_write'].
    """

    scope = "order_write"


def _principal(request) -> Principal:
    return Principal.from_user(request.user)


def _order_response(order, http_status=status.HTTP_200_OK):
    return Response(OrderSerializer(order).data, status=http_status)


# =====================================================
# CREATE
# =====================================================

class OrderCreateView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [OrderWriteThrottle]

    @extend_schema(
        tags=["Orders"],
        request=CreateOrderInputSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(description="Validation error or signature mismatch"),
            409: OpenApiResponse(description="Stock unavailable"),
        },
        description="Reserve stock and place an order. Empty items falls back to the cart.",
    )
    def post(self, request):
        ser = CreateOrderInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        claim = None
        if data.get("payment"):
            claim = PaymentClaim(**data["payment"])

        try:
            order = order_service.create_order(
                _principal(request),
                items=[ReservationLine(i["product_id"], i["quantity"]) for i in data["items"]],
                delivery_address=dict(data["delivery_address"]),
                payment_method=data["payment_method"],
                subtotal=data["subtotal"],
                delivery_charge=data["delivery_charge"],
                total=data["total"],
                notes=data["notes"],
                payment_claim=claim,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return _order_response(order, status.HTTP_201_CREATED)


# =====================================================
# READ
# =====================================================

class MyOrdersView(generics.ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filter_backends = []

    @extend_schema(tags=["Orders"], description="Orders placed by the current user.")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return order_service.list_orders(_principal(self.request))


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Orders"],
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(description="Not your order"),
            404: OpenApiResponse(description="Order not found"),
        },
    )
    def get(self, request, order_id):
        try:
            order = order_service.get_order(_principal(request), order_id)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return _order_response(order)


class AdminOrderListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = AdminOrderSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = AdminOrderFilter

    @extend_schema(tags=["Orders (admin)"], description="All orders, filterable by status.")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return order_service.list_all_orders(_principal(self.request))


# =====================================================
# MUTATIONS
# =====================================================

class OrderCancelView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [OrderWriteThrottle]

    @extend_schema(
        tags=["Orders"],
        request=CancelOrderInputSerializer,
        responses={
            200: OrderSerializer,
            409: OpenApiResponse(description="Order already delivered or cancelled"),
        },
    )
    def put(self, request, order_id):
        ser = CancelOrderInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            order = order_service.cancel_order(
                _principal(request),
                order_id,
                reason=ser.validated_data.get("reason"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return _order_response(order)


class OrderReviewView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [OrderWriteThrottle]

    @extend_schema(
        tags=["Orders"],
        request=ReviewInputSerializer,
        responses={
            200: OrderSerializer,
            409: OpenApiResponse(description="Order not delivered yet"),
        },
    )
    def post(self, request, order_id):
        ser = ReviewInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            order = order_service.add_review(
                _principal(request),
                order_id,
                ser.validated_data["rating"],
                ser.validated_data["review"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return _order_response(order)


class OrderStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        tags=["Orders (admin)"],
        request=StatusInputSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Invalid status"),
        },
    )
    def put(self, request, order_id):
        ser = StatusInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            order = order_service.transition_status(
                _principal(request),
                order_id,
                ser.validated_data["status"],
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return _order_response(order)
