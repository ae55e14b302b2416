# payments/admin.py

from django.contrib import admin

from payments.models import PaymentWebhookEvent


@admin.register(PaymentWebhookEvent)
class PaymentWebhookEventAdmin(admin.ModelAdmin):
    """View-only audit of gateway webhook deliveries."""

    list_display = ("event_type", "event_id", "gateway_order_id", "outcome", "received_at")
    list_filter = ("event_type", "outcome")
    search_fields = ("event_id", "gateway_order_id", "gateway_payment_id")
    readonly_fields = (
        "event_id",
        "event_type",
        "gateway_order_id",
        "gateway_payment_id",
        "outcome",
        "payload",
        "received_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
