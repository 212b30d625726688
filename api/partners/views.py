"""
Partner Views
=============
Owner-side partner management for each partner kind, plus the invitee's
side of the invitation: listing, responding and token acceptance.
"""
from django.apps import apps
from django.utils.translation import gettext_lazy as _
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter

from core.exceptions import ResourceNotFound, ValidationFailed
from .models import PARTNER_MODELS, PartnerKind
from .registry import check_email, pending_for_user
from .serializers import (
    CompanyPartnerSerializer, CompanyPartnerWriteSerializer, CompanyPartnerCreateSerializer,
    TrustPartnerSerializer, TrustPartnerWriteSerializer, TrustPartnerCreateSerializer,
    PartnershipPartnerSerializer, PartnershipPartnerWriteSerializer, PartnershipPartnerCreateSerializer,
    CheckEmailSerializer, InvitationTokenSerializer, PendingInvitationSerializer, RespondInvitationSerializer,
)

UUID_REGEX = r'[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}'

READ_SERIALIZERS = {
    PartnerKind.COMPANY.value: CompanyPartnerSerializer,
    PartnerKind.TRUST.value: TrustPartnerSerializer,
    PartnerKind.PARTNERSHIP.value: PartnershipPartnerSerializer,
}


def partners_app():
    return apps.get_app_config('partners')


class PartnerViewSetBase(viewsets.GenericViewSet):
    kind = None
    write_serializer_class = None
    create_serializer_class = None
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_REGEX

    @property
    def registry(self):
        return partners_app().registries[self.kind]

    def get_queryset(self):
        model = PARTNER_MODELS[self.kind]
        if getattr(self, 'swagger_fake_view', False):
            return model.objects.none()
        return model.objects.filter(account__owner=self.request.user).select_related('account')

    def get_serializer_class(self):
        if self.action == 'create':
            return self.create_serializer_class
        if self.action == 'partial_update':
            return self.write_serializer_class
        return self.serializer_class

    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.serializer_class(page, many=True).data)
        return Response(self.serializer_class(queryset, many=True).data)

    def create(self, request):
        serializer = self.create_serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        account_id = data.pop('account_id')
        partner, result = self.registry.add_partner(request.user, account_id, data, request=request)
        return Response({
            'partner': self.serializer_class(partner).data,
            **result.as_dict(),
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        partner = self.registry.get_owned_partner(request.user, pk, request=request)
        return Response(self.serializer_class(partner).data)

    def partial_update(self, request, pk=None):
        serializer = self.write_serializer_class(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        partner, result = self.registry.update_partner(
            request.user, pk, dict(serializer.validated_data), request=request
        )
        data = {'partner': self.serializer_class(partner).data, 're_invited': result is not None}
        if result is not None:
            data.update(result.as_dict())
        return Response(data)

    def destroy(self, request, pk=None):
        if request.query_params.get('confirm', '').lower() not in ('true', '1', 'yes'):
            raise ValidationFailed(_('Add ?confirm=true to permanently delete this partner.'))
        self.registry.remove_partner(request.user, pk, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path=r'account/(?P<account_id>[^/.]+)')
    def account(self, request, account_id=None):
        partners = self.registry.list_partners(request.user, account_id, request=request)
        return Response(self.serializer_class(partners, many=True).data)

    @action(detail=True, methods=['post'])
    def resend(self, request, pk=None):
        partner, result = self.registry.resend(request.user, pk, request=request)
        return Response({'partner': self.serializer_class(partner).data, **result.as_dict()})

    @action(detail=True, methods=['post'])
    def remove(self, request, pk=None):
        partner = self.registry.get_partner(pk)
        self.registry.state_machine.remove(partner, request.user, request=request)
        return Response(self.serializer_class(partner).data)


def partner_schema(label, tag='Partners'):
    return extend_schema_view(
        list=extend_schema(tags=[tag], summary=f'{label}列表 / List partners'),
        create=extend_schema(
            tags=[tag],
            summary=f'新增{label} / Add partner',
            description='新增並發出邀請；若對方已註冊則發出審批通知。\n\nAdd a partner and send the invitation.',
        ),
        retrieve=extend_schema(tags=[tag], summary=f'{label}詳情 / Get partner'),
        partial_update=extend_schema(
            tags=[tag],
            summary=f'更新{label} / Update partner',
            description='更改電郵會重設為待審批並重新邀請。\n\nChanging the e-mail resets the record to PENDING and re-invites.',
        ),
        destroy=extend_schema(
            tags=[tag],
            summary=f'永久刪除{label} / Delete partner',
            parameters=[OpenApiParameter('confirm', str, description='Must be "true"')],
        ),
        account=extend_schema(tags=[tag], summary=f'帳戶{label} / Partners on account'),
        resend=extend_schema(tags=[tag], summary='重發邀請 / Resend invitation', request=None),
        remove=extend_schema(
            tags=[tag],
            summary=f'移除{label} / Remove partner',
            description='擁有人可隨時移除；受邀人可退出已批准的關係。\n\nOwner removes from any state; invitee may withdraw once approved.',
            request=None,
        ),
    )


@partner_schema('董事/股東')
class CompanyPartnerViewSet(PartnerViewSetBase):
    kind = PartnerKind.COMPANY.value
    serializer_class = CompanyPartnerSerializer
    write_serializer_class = CompanyPartnerWriteSerializer
    create_serializer_class = CompanyPartnerCreateSerializer


@partner_schema('信託人')
class TrustPartnerViewSet(PartnerViewSetBase):
    kind = PartnerKind.TRUST.value
    serializer_class = TrustPartnerSerializer
    write_serializer_class = TrustPartnerWriteSerializer
    create_serializer_class = TrustPartnerCreateSerializer


@partner_schema('合夥人')
class PartnershipPartnerViewSet(PartnerViewSetBase):
    kind = PartnerKind.PARTNERSHIP.value
    serializer_class = PartnershipPartnerSerializer
    write_serializer_class = PartnershipPartnerWriteSerializer
    create_serializer_class = PartnershipPartnerCreateSerializer


class CheckEmailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Partners'],
        summary='檢查電郵 / Check email',
        description='檢查電郵是否已註冊。\n\nWhether an e-mail belongs to a registered user.',
        parameters=[OpenApiParameter('email', str, required=True)],
    )
    def get(self, request):
        serializer = CheckEmailSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return Response(check_email(serializer.validated_data['email']))


class PendingInvitationsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Partners'],
        summary='我的邀請 / My invitations',
        description='列出發給當前用戶的待審批邀請。\n\nPending invitations addressed to the current user.',
        responses=PendingInvitationSerializer(many=True),
    )
    def get(self, request):
        return Response(PendingInvitationSerializer(pending_for_user(request.user), many=True).data)


class RespondInvitationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Partners'],
        summary='回覆邀請 / Respond to invitation',
        description='批准或拒絕邀請。\n\nApprove or reject an invitation addressed to you.',
        request=RespondInvitationSerializer,
    )
    def post(self, request, kind, pk):
        if kind not in PARTNER_MODELS:
            raise ResourceNotFound(_('Unknown partner kind.'))
        serializer = RespondInvitationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        app = partners_app()
        partner = app.registries[kind].get_partner(pk)
        app.state_machine.respond(partner, request.user, serializer.validated_data['action'], request=request)
        return Response(READ_SERIALIZERS[kind](partner).data)


class VerifyInvitationTokenView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'invitation_token'

    @extend_schema(
        tags=['Partners'],
        summary='驗證邀請碼 / Verify invitation token',
        description='公開端點，註冊前驗證邀請。\n\nPublic, rate-limited check of an e-mailed invitation token.',
        request=InvitationTokenSerializer,
    )
    def post(self, request):
        serializer = InvitationTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invitation = partners_app().state_machine.verify_token(
            serializer.validated_data['email'], serializer.validated_data['token']
        )
        account = invitation.account
        return Response({
            'valid': True,
            'kind': invitation.kind,
            'account_name': account.name,
            'account_type': account.account_type,
            'inviter_name': account.owner.display_name,
            'expires_at': invitation.expires_at,
        })


class AcceptInvitationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=['Partners'],
        summary='接受邀請 / Accept invitation',
        description='註冊後以邀請碼接受邀請。\n\nAccept an invitation with its e-mailed token after signing up.',
        request=InvitationTokenSerializer,
    )
    def post(self, request):
        serializer = InvitationTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        partners = partners_app().state_machine.accept_with_token(
            request.user,
            serializer.validated_data['email'],
            serializer.validated_data['token'],
            request=request,
        )
        if not partners:
            raise ResourceNotFound(_('No pending invitation found for this account.'))
        return Response({
            'success': True,
            'partners': [READ_SERIALIZERS[p.KIND](p).data for p in partners],
        })
