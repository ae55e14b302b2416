# cart/serializers/cart.py

"""
CART SERIALIZERS

Totals are computed server-side from current product prices; the client
never sends money for a cart.
"""

from decimal import Decimal

from rest_framework import serializers

from cart.models import Cart, CartItem


class CartItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    name = serializers.CharField(source="product.name", read_only=True)
    price = serializers.DecimalField(source="product.price", max_digits=10, decimal_places=2, read_only=True)
    emoji = serializers.CharField(source="product.emoji", read_only=True)
    in_stock = serializers.BooleanField(source="product.in_stock", read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product_id",
            "name",
            "price",
            "emoji",
            "in_stock",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)

    item_count = serializers.SerializerMethodField(read_only=True)
    subtotal_amount = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "items",
            "item_count",
            "subtotal_amount",
            "updated_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj) -> int:
        return sum(int(i.quantity or 0) for i in obj.items.all())

    def get_subtotal_amount(self, obj) -> str:
        total = sum((i.line_total for i in obj.items.select_related("product")), Decimal("0.00"))
        return str(total.quantize(Decimal("0.01")))


class SetCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=0)
