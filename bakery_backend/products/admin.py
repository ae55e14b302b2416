# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules:

- Catalog management (create / edit / price / stock) happens here.
- Saving with stock_quantity = 0 always clears in_stock (Product.save()).
- in_stock may be switched off manually while stock remains (deactivation).
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Product


# =====================================================
# PRODUCT
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "emoji",
        "category",
        "price",
        "stock_quantity",
        "in_stock",
        "updated_at",
    )
    list_filter = ("in_stock", "category")
    search_fields = ("name", "category")
    ordering = ("name",)
    readonly_fields = ("created_at", "updated_at")
    list_editable = ("stock_quantity", "in_stock")
