# PATH: orders/serializers.py

"""
ORDER SERIALIZERS

Transport-layer contracts only: they validate request/response shapes,
not business rules (those live in orders.services).
"""

from __future__ import annotations

from rest_framework import serializers

from orders.models import Order, OrderItem
from orders.services.order_lifecycle import MAX_RATING, MIN_RATING, TRANSITION_TARGETS


# =====================================================
# INPUT
# =====================================================

class OrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class DeliveryAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    phone = serializers.CharField(max_length=32)
    address = serializers.CharField(max_length=500)
    landmark = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    pincode = serializers.CharField(max_length=12, required=False, allow_blank=True, default="")


class PaymentClaimSerializer(serializers.Serializer):
    gateway_order_id = serializers.CharField(max_length=64)
    payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=128)
    payment_status = serializers.ChoiceField(
        choices=[c[0] for c in Order.PAYMENT_STATUS_CHOICES],
        required=False,
        default=Order.PAYMENT_PAID,
    )


class CreateOrderInputSerializer(serializers.Serializer):
    """
    items may be omitted: the server-side cart is used instead.
    payment is required for razorpay and optional for other online methods.
    """

    items = OrderLineInputSerializer(many=True, required=False, default=list)
    delivery_address = DeliveryAddressSerializer()
    payment_method = serializers.ChoiceField(choices=[c[0] for c in Order.PAYMENT_METHOD_CHOICES])
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    delivery_charge = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, default=0
    )
    total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    payment = PaymentClaimSerializer(required=False, allow_null=True, default=None)


class CancelOrderInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class ReviewInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=MIN_RATING, max_value=MAX_RATING)
    review = serializers.CharField(required=False, allow_blank=True, default="")


class StatusInputSerializer(serializers.Serializer):
    # Validated in the service so an unknown value maps to INVALID_STATUS
    status = serializers.CharField(help_text=", ".join(TRANSITION_TARGETS))


# =====================================================
# OUTPUT
# =====================================================

class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ["product_id", "name", "price", "quantity", "emoji", "line_total"]
        read_only_fields = fields


class TimelineStepSerializer(serializers.Serializer):
    status = serializers.CharField()
    time = serializers.CharField()
    completed = serializers.BooleanField()


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    timeline = TimelineStepSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user",
            "items",
            "delivery_address",
            "payment_method",
            "payment_status",
            "status",
            "subtotal",
            "delivery_charge",
            "total",
            "timeline",
            "notes",
            "estimated_delivery",
            "delivered_at",
            "cancelled_at",
            "cancel_reason",
            "rating",
            "review",
            "gateway_order_id",
            "gateway_payment_id",
            "payment_error",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    user_name = serializers.CharField(source="user.name", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["user_email", "user_name"]
        read_only_fields = fields
