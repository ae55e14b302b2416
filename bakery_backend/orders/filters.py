# orders/filters.py

import django_filters

from orders.models import Order


class AdminOrderFilter(django_filters.FilterSet):
    created_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_to = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    q = django_filters.CharFilter(method="filter_q")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "payment_method"]

    def filter_q(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(order_number__icontains=value) | queryset.filter(
            user__email__icontains=value
        )
