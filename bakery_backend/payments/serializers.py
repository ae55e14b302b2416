# payments/serializers.py

from __future__ import annotations

from rest_framework import serializers


class CreateGatewayOrderInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    currency = serializers.CharField(max_length=8, required=False, allow_blank=True, default="")
    receipt = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs.get("amount") is None and attrs.get("order_id") is None:
            raise serializers.ValidationError("amount or order_id is required")
        return attrs


class VerifyPaymentInputSerializer(serializers.Serializer):
    gateway_order_id = serializers.CharField(max_length=64)
    payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=128)
    order_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class PaymentFailureInputSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class RefundInputSerializer(serializers.Serializer):
    payment_id = serializers.CharField(max_length=64)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True, default=None
    )


class WebhookAckSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    duplicate = serializers.BooleanField()
    outcome = serializers.CharField()
