"""
Account Views
=============
Owner-facing account lifecycle plus the admin back-office endpoints.
"""
from django.db.models import Count
from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from django.utils.translation import gettext_lazy as _

from .models import Account, AccountStatus
from .serializers import (
    AccountSerializer, AccountDetailSerializer, AccountCreateSerializer,
    AccountStatusSerializer, PROFILE_SERIALIZERS,
)
from . import services


@extend_schema_view(
    list=extend_schema(
        tags=['Accounts'],
        summary='帳戶列表 / List accounts',
        description='列出當前用戶擁有的帳戶。\n\nList the accounts owned by the current user.'
    ),
    create=extend_schema(
        tags=['Accounts'],
        summary='建立帳戶 / Create account',
        description='建立帳戶及其對應類型的資料。\n\nCreate an account together with its type-specific profile.',
        request=AccountCreateSerializer,
    ),
    retrieve=extend_schema(
        tags=['Accounts'],
        summary='帳戶詳情 / Get account',
        description='帳戶詳情，包含尚欠的同意書。\n\nAccount details including missing consents.'
    ),
    destroy=extend_schema(
        tags=['Accounts'],
        summary='永久刪除帳戶 / Permanently delete account',
        description='永久刪除帳戶及所有相關資料，無法復原。\n\nPermanently delete the account and everything linked to it.'
    ),
)
class AccountViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return Account.objects.none()
        return Account.objects.filter(owner=self.request.user)

    def get_object(self):
        return services.get_owned_account(self.request.user, self.kwargs['pk'], request=self.request)

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return AccountDetailSerializer
        if self.action == 'create':
            return AccountCreateSerializer
        return AccountSerializer

    def create(self, request):
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = services.create_account(
            owner=request.user,
            name=serializer.validated_data['name'],
            account_type=serializer.validated_data['account_type'],
            profile_data=serializer.validated_data['profile'],
            request=request,
        )
        return Response(AccountDetailSerializer(account).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        services.delete_account(instance, self.request.user, request=self.request)

    @extend_schema(
        tags=['Accounts'],
        summary='更新帳戶資料 / Update profile',
        description='更新帳戶類型對應的資料。\n\nUpdate the type-specific profile.',
        request=None,
    )
    @action(detail=True, methods=['patch'])
    def profile(self, request, pk=None):
        account = self.get_object()
        profile = account.profile
        if profile is None:
            return Response({
                'error': 'not_found',
                'message': _('Account profile not found.')
            }, status=status.HTTP_404_NOT_FOUND)
        serializer = PROFILE_SERIALIZERS[account.account_type](profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(AccountSerializer(account).data)

    @extend_schema(tags=['Accounts'], summary='提交審核 / Submit for review', request=None)
    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        account = services.submit_account(self.get_object(), request.user, request=request)
        return Response(AccountSerializer(account).data)

    @extend_schema(tags=['Accounts'], summary='關閉帳戶 / Close account', request=None)
    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        account = services.close_account(self.get_object(), request.user, request=request)
        return Response(AccountSerializer(account).data)

    @extend_schema(tags=['Accounts'], summary='重開帳戶 / Reopen account', request=None)
    @action(detail=True, methods=['post'])
    def reopen(self, request, pk=None):
        account = services.reopen_account(self.get_object(), request.user, request=request)
        return Response(AccountSerializer(account).data)

    @extend_schema(tags=['Accounts'], summary='設為預設 / Set default account', request=None)
    @action(detail=True, methods=['post'], url_path='set-default')
    def set_default(self, request, pk=None):
        account = services.set_default_account(self.get_object())
        return Response(AccountSerializer(account).data)

    @extend_schema(tags=['Accounts'], summary='預設帳戶 / Default account')
    @action(detail=False, methods=['get'])
    def default(self, request):
        account = self.get_queryset().filter(is_default=True).first()
        if account is None:
            return Response({
                'error': 'not_found',
                'message': _('No default account.')
            }, status=status.HTTP_404_NOT_FOUND)
        return Response(AccountSerializer(account).data)


@extend_schema_view(
    list=extend_schema(
        tags=['Admin'],
        summary='全部帳戶 / All accounts',
        description='後台帳戶列表。\n\nBack-office account list.'
    ),
    retrieve=extend_schema(tags=['Admin'], summary='帳戶詳情 / Account details'),
)
class AdminAccountViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser]
    serializer_class = AccountDetailSerializer
    queryset = Account.objects.select_related('owner').all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'account_type']
    search_fields = ['name', 'owner__email', 'owner__full_name']
    ordering_fields = ['created_at', 'name']

    @extend_schema(tags=['Admin'], summary='更新帳戶狀態 / Update account status', request=AccountStatusSerializer)
    @action(detail=True, methods=['patch'])
    def status(self, request, pk=None):
        account = self.get_object()
        serializer = AccountStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.admin_set_status(account, serializer.validated_data['status'], request.user, request=request)
        return Response(AccountDetailSerializer(account).data)

    @extend_schema(tags=['Admin'], summary='帳戶統計 / Account statistics')
    @action(detail=False, methods=['get'])
    def stats(self, request):
        by_status = dict(
            Account.objects.values('status').annotate(count=Count('id')).values_list('status', 'count')
        )
        by_type = dict(
            Account.objects.values('account_type').annotate(count=Count('id')).values_list('account_type', 'count')
        )
        return Response({
            'total': Account.objects.count(),
            'pending_review': by_status.get(AccountStatus.PENDING, 0),
            'by_status': by_status,
            'by_type': by_type,
        })
