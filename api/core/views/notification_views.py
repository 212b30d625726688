"""
Notification Views
==================
API views for the in-app notification feed.
"""
from rest_framework import viewsets, mixins, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend

from drf_spectacular.utils import extend_schema, extend_schema_view

from core.models_notifications import Notification
from core.serializers_notifications import (
    NotificationSerializer, NotificationListSerializer,
    MarkNotificationsReadSerializer, NotificationCountSerializer
)
from core.services.notification_service import NotificationService


@extend_schema_view(
    list=extend_schema(
        tags=['Notifications'],
        summary='通知列表 / List Notifications',
        description='獲取當前用戶的所有通知。\n\nGet all notifications for the current user.'
    ),
    retrieve=extend_schema(
        tags=['Notifications'],
        summary='通知詳情 / Get Notification',
        description='依 ID 獲取通知。\n\nGet a specific notification by ID.'
    ),
)
class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Read-only notification feed for the current user
    """
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_read', 'notification_type', 'category', 'priority']
    search_fields = ['title', 'message']
    ordering_fields = ['created_at', 'priority']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return NotificationListSerializer
        return NotificationSerializer

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return Notification.objects.none()
        return Notification.objects.filter(user=self.request.user)

    @extend_schema(
        tags=['Notifications'],
        summary='未讀通知 / Unread Notifications',
        description='獲取當前用戶的未讀通知。\n\nGet unread notifications for the current user.'
    )
    @action(detail=False, methods=['get'])
    def unread(self, request):
        notifications = self.get_queryset().filter(is_read=False)
        serializer = NotificationListSerializer(notifications, many=True)
        return Response(serializer.data)

    @extend_schema(
        tags=['Notifications'],
        summary='未讀數量 / Unread Count',
        description='未讀通知數量，包括待回覆的邀請。\n\nUnread counts, including invitations awaiting a response.',
        responses={200: NotificationCountSerializer}
    )
    @action(detail=False, methods=['get'])
    def counts(self, request):
        return Response(NotificationService.unread_summary(request.user))

    @extend_schema(
        tags=['Notifications'],
        summary='標記已讀 / Mark Notifications as Read',
        description='標記指定通知或全部通知為已讀。\n\nMark specific notifications or all notifications as read.',
        request=MarkNotificationsReadSerializer
    )
    @action(detail=False, methods=['post'])
    def mark_read(self, request):
        serializer = MarkNotificationsReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        notification_ids = serializer.validated_data.get('notification_ids', [])

        if notification_ids:
            count = NotificationService.mark_as_read(notification_ids, request.user)
        else:
            count = NotificationService.mark_all_as_read(request.user)

        return Response({'marked_count': count})

    @extend_schema(
        tags=['Notifications'],
        summary='標記單一通知已讀 / Mark Single Notification as Read'
    )
    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = self.get_object()
        notification.mark_as_read()
        return Response(NotificationSerializer(notification).data)
