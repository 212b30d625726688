"""
Service Catalogue Views
=======================
Client-facing catalogue and purchasing, plus back-office management.
"""
from django.db.models import Count, Sum
from django.utils.translation import gettext_lazy as _
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view

from accounts.services import get_owned_account
from core.exceptions import Conflict
from .gate import PurchaseGate, set_purchase_status
from .models import AccountService, PaymentStatus, PurchaseStatus, Service, ServiceCategory
from .serializers import (
    AccountServiceOfferSerializer, AccountServiceSerializer, PurchaseSerializer,
    PurchaseStatusSerializer, ServiceSerializer,
)


class ServicesForAccountView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Services'],
        summary='可購買服務 / Services for account',
        description='列出帳戶類型可購買的服務及價格。\n\nActive services available to the account type, with prices.',
        responses=AccountServiceOfferSerializer(many=True),
    )
    def get(self, request, account_id):
        account = get_owned_account(request.user, account_id, request=request)
        services = [
            s for s in Service.objects.filter(is_active=True)
            if s.allows(account.account_type)
        ]
        purchased_ids = set(
            AccountService.objects.filter(account=account)
            .exclude(status=PurchaseStatus.CANCELLED)
            .values_list('service_id', flat=True)
        )
        serializer = AccountServiceOfferSerializer(
            services, many=True, context={'account': account, 'purchased_ids': purchased_ids}
        )
        return Response(serializer.data)


class PurchasedServicesView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Services'],
        summary='已購買服務 / Purchased services',
        responses=AccountServiceSerializer(many=True),
    )
    def get(self, request, account_id):
        account = get_owned_account(request.user, account_id, request=request)
        purchases = AccountService.objects.filter(account=account).select_related('service', 'account')
        return Response(AccountServiceSerializer(purchases, many=True).data)


class PurchaseServiceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Services'],
        summary='購買服務 / Purchase service',
        description=(
            '為帳戶購買服務；若尚欠同意書，狀態為 CONSENT_REQUIRED。\n\n'
            'Purchase a service; starts as CONSENT_REQUIRED when consents are missing.'
        ),
        request=PurchaseSerializer,
        responses={201: AccountServiceSerializer},
    )
    def post(self, request):
        serializer = PurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        purchase = PurchaseGate().purchase(
            request.user,
            data['account_id'],
            data['service_id'],
            financial_year=data.get('financial_year'),
            notes=data.get('notes', ''),
            request=request,
        )
        return Response(AccountServiceSerializer(purchase).data, status=status.HTTP_201_CREATED)


class ServiceCategoriesView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Services'], summary='服務類別 / Service categories')
    def get(self, request):
        return Response([{'value': value, 'label': label} for value, label in ServiceCategory.choices])


@extend_schema_view(
    list=extend_schema(tags=['Admin'], summary='服務列表 / List services'),
    create=extend_schema(tags=['Admin'], summary='建立服務 / Create service'),
    retrieve=extend_schema(tags=['Admin'], summary='服務詳情 / Get service'),
    update=extend_schema(tags=['Admin'], summary='更新服務 / Update service'),
    partial_update=extend_schema(tags=['Admin'], summary='部分更新服務 / Partial update service'),
    destroy=extend_schema(
        tags=['Admin'],
        summary='刪除服務 / Delete service',
        description='已有購買紀錄的服務不能刪除，請改為停用。\n\nServices with purchases cannot be deleted; deactivate them instead.'
    ),
)
class AdminServiceViewSet(viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser]
    serializer_class = ServiceSerializer
    queryset = Service.objects.all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'is_active', 'requires_consent']
    search_fields = ['code', 'name']
    ordering_fields = ['sort_order', 'name', 'created_at']

    def perform_destroy(self, instance):
        if instance.purchases.exists():
            raise Conflict(_('Service has purchases; deactivate it instead.'))
        instance.delete()

    @extend_schema(tags=['Admin'], summary='啟用/停用服務 / Toggle service', request=None)
    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        service = self.get_object()
        service.is_active = not service.is_active
        service.save(update_fields=['is_active', 'updated_at'])
        return Response(ServiceSerializer(service).data)

    @extend_schema(tags=['Admin'], summary='服務統計 / Service statistics')
    @action(detail=False, methods=['get'])
    def stats(self, request):
        purchases = AccountService.objects.all()
        by_status = dict(
            purchases.values('status').annotate(count=Count('id')).values_list('status', 'count')
        )
        revenue = purchases.filter(payment_status=PaymentStatus.PAID).aggregate(total=Sum('payment_amount'))['total']
        return Response({
            'services': Service.objects.count(),
            'active_services': Service.objects.filter(is_active=True).count(),
            'purchases': purchases.count(),
            'awaiting_consent': by_status.get(PurchaseStatus.CONSENT_REQUIRED, 0),
            'by_status': by_status,
            'revenue': str(revenue or 0),
        })


@extend_schema_view(
    list=extend_schema(tags=['Admin'], summary='購買紀錄 / All purchases'),
    retrieve=extend_schema(tags=['Admin'], summary='購買詳情 / Purchase details'),
)
class AdminPurchaseViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser]
    serializer_class = AccountServiceSerializer
    queryset = AccountService.objects.select_related('service', 'account').all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'payment_status', 'service', 'account', 'financial_year']
    search_fields = ['account__name', 'service__code', 'transaction_id']
    ordering_fields = ['purchased_at', 'paid_at']

    @extend_schema(tags=['Admin'], summary='更新服務狀態 / Update purchase status', request=PurchaseStatusSerializer)
    @action(detail=True, methods=['patch'])
    def status(self, request, pk=None):
        purchase = self.get_object()
        serializer = PurchaseStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        set_purchase_status(purchase, serializer.validated_data['status'], user=request.user, request=request)
        return Response(AccountServiceSerializer(purchase).data)
