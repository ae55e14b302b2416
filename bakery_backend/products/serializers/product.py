# products/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Read-only catalog representation for the storefront.
- Stock counters are exposed as-is; the storefront never does stock math.
"""

from rest_framework import serializers

from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "price",
            "emoji",
            "stock_quantity",
            "in_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
