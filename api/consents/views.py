"""
Consent Views
=============
Signing, checking and listing legal consents.
"""
from django.db.models import Count
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view

from accounts.services import get_owned_account
from .models import ConsentType, LegalConsent
from .resolver import ALWAYS_REQUIRED, REQUIRED_FOR_ENTITIES, missing_consents, required_consents
from .serializers import (
    AcceptConsentsSerializer, AdminLegalConsentSerializer, ConsentCheckSerializer, LegalConsentSerializer,
)
from .services import record_consents


class AcceptConsentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Consents'],
        summary='簽署同意書 / Accept consents',
        description='為帳戶記錄一份或多份同意書，並記錄 IP 與瀏覽器。\n\nRecord one or more consents for an owned account.',
        request=AcceptConsentsSerializer,
        responses={201: LegalConsentSerializer(many=True)},
    )
    def post(self, request):
        serializer = AcceptConsentsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        account = get_owned_account(request.user, data['account_id'], request=request)
        consents = record_consents(
            account,
            request.user,
            data['consent_types'],
            document_version=data.get('document_version'),
            signature_data=data.get('signature_data', ''),
            signature_type=data.get('signature_type', ''),
            signed_name=data.get('signed_name', ''),
            request=request,
        )
        return Response({
            'consents': LegalConsentSerializer(consents, many=True).data,
            'missing': missing_consents(account),
        }, status=status.HTTP_201_CREATED)


class ConsentCheckView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Consents'],
        summary='檢查同意書 / Check consents',
        description='帳戶所需及尚欠的同意書。\n\nRequired and missing consents for an account.',
        responses=ConsentCheckSerializer,
    )
    def get(self, request, account_id):
        account = get_owned_account(request.user, account_id, request=request)
        missing = missing_consents(account)
        return Response({
            'account_id': account.pk,
            'account_type': account.account_type,
            'required': required_consents(account.account_type),
            'missing': missing,
            'has_all_required': not missing,
        })


class AccountConsentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Consents'],
        summary='帳戶同意書 / Account consents',
        responses=LegalConsentSerializer(many=True),
    )
    def get(self, request, account_id):
        account = get_owned_account(request.user, account_id, request=request)
        consents = LegalConsent.objects.filter(account=account).select_related('account')
        return Response(LegalConsentSerializer(consents, many=True).data)


class RequiredConsentsView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=['Consents'],
        summary='所需同意書 / Required consents',
        description='各帳戶類型所需的同意書（公開）。\n\nConsent requirements by account type (public).',
    )
    def get(self, request):
        return Response({
            'always_required': [c.value for c in ALWAYS_REQUIRED],
            'required_for_non_individual': [c.value for c in REQUIRED_FOR_ENTITIES],
            'all': [{'value': value, 'label': label} for value, label in ConsentType.choices],
        })


class MyConsentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Consents'],
        summary='我的同意書 / My consents',
        responses=LegalConsentSerializer(many=True),
    )
    def get(self, request):
        consents = LegalConsent.objects.filter(user=request.user).select_related('account')
        return Response(LegalConsentSerializer(consents, many=True).data)


@extend_schema_view(
    list=extend_schema(
        tags=['Admin'],
        summary='全部同意書 / All consents',
        description='後台同意書列表。\n\nBack-office consent list.'
    ),
    retrieve=extend_schema(tags=['Admin'], summary='同意書詳情 / Consent details'),
)
class AdminConsentViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsAdminUser]
    serializer_class = AdminLegalConsentSerializer
    queryset = LegalConsent.objects.select_related('account', 'user').all()
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['consent_type', 'account', 'document_version']
    search_fields = ['account__name', 'user__email', 'signed_name']
    ordering_fields = ['accepted_at']

    @extend_schema(tags=['Admin'], summary='同意書統計 / Consent statistics')
    @action(detail=False, methods=['get'])
    def stats(self, request):
        by_type = dict(
            LegalConsent.objects.values('consent_type').annotate(count=Count('id'))
            .values_list('consent_type', 'count')
        )
        return Response({
            'total': LegalConsent.objects.count(),
            'accounts_with_consents': LegalConsent.objects.values('account').distinct().count(),
            'by_type': by_type,
        })
