from .api import (
    AdminOrderListView,
    MyOrdersView,
    OrderCancelView,
    OrderCreateView,
    OrderDetailView,
    OrderReviewView,
    OrderStatusView,
)

__all__ = [
    "AdminOrderListView",
    "MyOrdersView",
    "OrderCancelView",
    "OrderCreateView",
    "OrderDetailView",
    "OrderReviewView",
    "OrderStatusView",
]
