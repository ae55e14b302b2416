# orders/admin.py

"""
Orders admin is read-mostly: status and payment changes must go through
the API (which applies the lifecycle rules), so those fields are read-only.
"""

from django.contrib import admin

from orders.models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("line_no", "product_id", "name", "price", "quantity", "emoji")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "user",
        "status",
        "payment_status",
        "payment_method",
        "total",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    search_fields = ("order_number", "user__email", "gateway_order_id", "gateway_payment_id")
    ordering = ("-created_at",)
    readonly_fields = (
        "order_number",
        "user",
        "payment_method",
        "payment_status",
        "status",
        "subtotal",
        "delivery_charge",
        "total",
        "timeline",
        "estimated_delivery",
        "delivered_at",
        "cancelled_at",
        "cancel_reason",
        "rating",
        "review",
        "gateway_order_id",
        "gateway_payment_id",
        "gateway_signature",
        "payment_error",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None):
        return False
