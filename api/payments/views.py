"""
Payment Views
=============
Stripe Checkout for service purchases, the Stripe webhook, and payment
statistics for the back office.
"""
import logging

from django.db.models import Count, Sum
from rest_framework import status
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from catalogue.models import AccountService, PaymentStatus
from catalogue.serializers import AccountServiceSerializer
from .gateway import StripeGateway
from .serializers import CreateCheckoutSerializer, VerifyPaymentSerializer
from . import services
from .webhooks import handle_event

logger = logging.getLogger(__name__)


class PaymentSettingsView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=['Payments'],
        summary='付款設定 / Payment settings',
        description='公開的付款設定（貨幣、稅率）。\n\nPublic payment settings: currency, tax rate and publishable key.',
    )
    def get(self, request):
        data = services.payment_settings()
        data['tax_rate'] = str(data['tax_rate'])
        return Response(data)


class CreateCheckoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Payments'],
        summary='建立付款 / Create checkout',
        description='建立購買紀錄及 Stripe Checkout。\n\nCreate the purchase and a Stripe Checkout session for it.',
        request=CreateCheckoutSerializer,
    )
    def post(self, request):
        serializer = CreateCheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        purchase, session, breakdown = services.create_checkout(
            request.user,
            data['account_id'],
            data['service_id'],
            financial_year=data.get('financial_year'),
            notes=data.get('notes', ''),
            success_url=data.get('success_url'),
            cancel_url=data.get('cancel_url'),
            request=request,
        )
        return Response({
            'purchase_id': purchase.pk,
            'session_id': session.id,
            'checkout_url': session.url,
            'subtotal': str(breakdown.subtotal),
            'tax_amount': str(breakdown.tax),
            'total': str(breakdown.total),
            'currency': purchase.currency,
        }, status=status.HTTP_201_CREATED)


class VerifyPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Payments'],
        summary='確認付款 / Verify payment',
        description='付款後返回時向 Stripe 確認狀態。\n\nConfirm a checkout with Stripe after the customer returns.',
        request=VerifyPaymentSerializer,
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        purchase, paid, session_status = services.verify_checkout(
            request.user,
            serializer.validated_data['purchase_id'],
            serializer.validated_data['session_id'],
            request=request,
        )
        return Response({
            'success': paid,
            'status': session_status,
            'purchase': AccountServiceSerializer(purchase).data,
        })


class PaymentStatusView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Payments'], summary='付款狀態 / Payment status', responses=AccountServiceSerializer)
    def get(self, request, purchase_id):
        purchase = services.get_owned_purchase(request.user, purchase_id)
        return Response(AccountServiceSerializer(purchase).data)


class CancelPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Payments'],
        summary='取消付款 / Cancel payment',
        description='刪除未付款的購買紀錄。\n\nDelete an unpaid purchase.',
    )
    def delete(self, request, purchase_id):
        services.cancel_checkout(request.user, purchase_id, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


class StripeWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=['Payments'],
        summary='Stripe Webhook',
        description='Stripe 事件回調，需驗證簽名。\n\nStripe event callback; the signature is verified.',
        request=None,
    )
    def post(self, request):
        event = StripeGateway().parse_event(request.body, request.META.get('HTTP_STRIPE_SIGNATURE', ''))
        logger.info(f"Stripe event {event.get('id')} ({event.get('type')})")
        handle_event(event, request=request)
        return Response({'received': True})


class AdminPaymentStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(tags=['Admin'], summary='付款統計 / Payment statistics')
    def get(self, request):
        purchases = AccountService.objects.all()
        by_status = dict(
            purchases.values('payment_status').annotate(count=Count('id'))
            .values_list('payment_status', 'count')
        )
        paid = purchases.filter(payment_status=PaymentStatus.PAID)
        totals = paid.aggregate(revenue=Sum('payment_amount'), tax=Sum('tax_amount'))
        return Response({
            'total_purchases': purchases.count(),
            'paid': by_status.get(PaymentStatus.PAID, 0),
            'pending': by_status.get(PaymentStatus.PENDING, 0),
            'failed': by_status.get(PaymentStatus.FAILED, 0),
            'refunded': by_status.get(PaymentStatus.REFUNDED, 0) + by_status.get(PaymentStatus.PARTIAL_REFUND, 0),
            'revenue': str(totals['revenue'] or 0),
            'tax_collected': str(totals['tax'] or 0),
            'recent': AccountServiceSerializer(
                paid.select_related('service', 'account').order_by('-paid_at')[:10], many=True
            ).data,
        })
