from django.urls import path

from .views import (
    AdminPaymentStatsView, CancelPaymentView, CreateCheckoutView, PaymentSettingsView,
    PaymentStatusView, StripeWebhookView, VerifyPaymentView,
)

urlpatterns = [
    path('payments/settings/', PaymentSettingsView.as_view(), name='payment-settings'),
    path('payments/create-checkout/', CreateCheckoutView.as_view(), name='payment-create-checkout'),
    path('payments/verify/', VerifyPaymentView.as_view(), name='payment-verify'),
    path('payments/status/<str:purchase_id>/', PaymentStatusView.as_view(), name='payment-status'),
    path('payments/cancel/<str:purchase_id>/', CancelPaymentView.as_view(), name='payment-cancel'),
    path('webhooks/stripe/', StripeWebhookView.as_view(), name='stripe-webhook'),
    path('admin/payments/stats/', AdminPaymentStatsView.as_view(), name='admin-payment-stats'),
]
