"""
Notification Serializers
========================
Dashboard feed entries. Approval requests carry the partner record they
point at so the dashboard can open the respond dialog directly.
"""
from rest_framework import serializers
from core.models_notifications import Notification, NotificationType

FEED_FIELDS = [
    'id', 'title', 'message', 'notification_type', 'category', 'priority',
    'is_read', 'requires_response', 'account_id', 'action_url', 'action_label', 'created_at',
]


class NotificationSerializer(serializers.ModelSerializer):
    requires_response = serializers.SerializerMethodField()
    account_id = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = FEED_FIELDS + ['read_at', 'related_object_type', 'related_object_id', 'metadata']
        read_only_fields = fields

    def get_requires_response(self, obj):
        return obj.notification_type == NotificationType.APPROVAL and not obj.is_read

    def get_account_id(self, obj):
        return (obj.metadata or {}).get('account_id')


class NotificationListSerializer(NotificationSerializer):
    class Meta(NotificationSerializer.Meta):
        fields = FEED_FIELDS
        read_only_fields = fields


class MarkNotificationsReadSerializer(serializers.Serializer):
    """Mark specific notifications read, or all of them when the list is empty"""
    notification_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class NotificationCountSerializer(serializers.Serializer):
    unread = serializers.IntegerField()
    approvals = serializers.IntegerField()
    by_category = serializers.DictField(child=serializers.IntegerField())
