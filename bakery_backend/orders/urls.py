# orders/urls.py

from django.urls import path

from orders.views import (
    AdminOrderListView,
    MyOrdersView,
    OrderCancelView,
    OrderCreateView,
    OrderDetailView,
    OrderReviewView,
    OrderStatusView,
)

app_name = "orders"

urlpatterns = [
    path("", MyOrdersView.as_view(), name="my-orders"),
    path("create/", OrderCreateView.as_view(), name="order-create"),
    path("admin/all/", AdminOrderListView.as_view(), name="admin-orders"),
    path("<str:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<str:order_id>/cancel/", OrderCancelView.as_view(), name="order-cancel"),
    path("<str:order_id>/review/", OrderReviewView.as_view(), name="order-review"),
    path("<str:order_id>/status/", OrderStatusView.as_view(), name="order-status"),
]
