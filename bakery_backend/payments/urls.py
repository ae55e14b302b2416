# payments/urls.py

from django.urls import path

from payments.views import (
    CreateGatewayOrderView,
    PaymentDetailView,
    PaymentFailureView,
    PaymentWebhookView,
    RefundView,
    VerifyPaymentView,
)

app_name = "payments"

urlpatterns = [
    path("create-order/", CreateGatewayOrderView.as_view(), name="create-order"),
    path("verify/", VerifyPaymentView.as_view(), name="verify"),
    path("failure/", PaymentFailureView.as_view(), name="failure"),
    path("refund/", RefundView.as_view(), name="refund"),
    path("webhook/", PaymentWebhookView.as_view(), name="webhook"),
    path("<str:payment_id>/", PaymentDetailView.as_view(), name="payment-detail"),
]
