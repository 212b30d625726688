"""
Auth Views
==========
Sign-up and the caller's own profile. Login and refresh are the simplejwt
views wired in ``core.urls``.
"""
import logging

from django.apps import apps
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from core.exceptions import ServiceError
from .serializers import UserProfileSerializer
from .auth_serializers import SignUpSerializer

logger = logging.getLogger(__name__)


class SignUpView(APIView):
    """
    POST /auth/signup/

    新用戶若帶有邀請碼，註冊後即自動接受邀請；否則回應附上待處理邀請數量。
    """
    permission_classes = [AllowAny]
    serializer_class = SignUpSerializer

    @extend_schema(
        tags=['Authentication'],
        summary='用戶註冊 / Sign up',
        description=(
            '建立用戶並返回 JWT Token。可附上電郵中的邀請碼。\n\n'
            'Create a user and return JWT tokens. An e-mailed invitation token may be passed as invite_token.'
        ),
    )
    def post(self, request):
        serializer = SignUpSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"User {user.pk} signed up")

        data = {
            'success': True,
            'message': _('Account created successfully. Welcome!'),
            'user': UserProfileSerializer(user).data,
            'accepted_invitations': 0,
        }

        invite_token = serializer.validated_data.get('invite_token')
        if invite_token:
            # The user exists either way; a stale token only skips the auto-accept
            try:
                accepted = apps.get_app_config('partners').state_machine.accept_with_token(
                    user, user.email, invite_token, request=request
                )
                data['accepted_invitations'] = len(accepted)
            except ServiceError as e:
                logger.warning(f"Invite token not applied for user {user.pk}: {e.detail}")
                data['invitation_error'] = str(e.detail)

        from partners.registry import pending_for_user
        data['pending_invitations'] = len(pending_for_user(user))

        refresh = RefreshToken.for_user(user)
        data['access'] = str(refresh.access_token)
        data['refresh'] = str(refresh)
        return Response(data, status=status.HTTP_201_CREATED)


class MeView(APIView):
    """
    GET/PATCH /auth/me/
    """
    permission_classes = [IsAuthenticated]
    serializer_class = UserProfileSerializer

    @extend_schema(tags=['Authentication'], summary='我的資料 / My profile')
    def get(self, request):
        return Response(UserProfileSerializer(request.user).data)

    @extend_schema(tags=['Authentication'], summary='更新我的資料 / Update my profile')
    def patch(self, request):
        serializer = UserProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
