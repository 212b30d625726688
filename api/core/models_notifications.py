"""
Notification Models
==================
In-app notifications and their per-channel delivery log.
"""
from django.db import models
from django.conf import settings
from django.utils import timezone

from core.models import BaseModel


class NotificationType(models.TextChoices):
    """Types of notifications"""
    INFO = 'INFO', 'Information'
    SUCCESS = 'SUCCESS', 'Success'
    WARNING = 'WARNING', 'Warning'
    APPROVAL = 'APPROVAL', 'Approval Request'
    PAYMENT = 'PAYMENT', 'Payment'


class NotificationCategory(models.TextChoices):
    SYSTEM = 'SYSTEM', 'System'
    ACCOUNTS = 'ACCOUNTS', 'Accounts'
    PARTNERS = 'PARTNERS', 'Partners'
    CONSENTS = 'CONSENTS', 'Consents'
    SERVICES = 'SERVICES', 'Services'
    PAYMENTS = 'PAYMENTS', 'Payments'


class NotificationPriority(models.TextChoices):
    LOW = 'LOW', 'Low'
    NORMAL = 'NORMAL', 'Normal'
    HIGH = 'HIGH', 'High'


class DeliveryChannel(models.TextChoices):
    EMAIL = 'EMAIL', 'Email'
    IN_APP = 'IN_APP', 'In-App'


class DeliveryStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    QUEUED = 'QUEUED', 'Queued'
    SENT = 'SENT', 'Sent'
    DELIVERED = 'DELIVERED', 'Delivered'
    FAILED = 'FAILED', 'Failed'


class Notification(BaseModel):
    """
    In-app notification shown on the user's dashboard.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )

    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(
        max_length=20,
        choices=NotificationType.choices,
        default=NotificationType.INFO
    )
    category = models.CharField(
        max_length=20,
        choices=NotificationCategory.choices,
        default=NotificationCategory.SYSTEM
    )
    priority = models.CharField(
        max_length=20,
        choices=NotificationPriority.choices,
        default=NotificationPriority.NORMAL
    )

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    # Relative dashboard path, e.g. /user-dashboard/invitations
    action_url = models.CharField(max_length=500, null=True, blank=True)
    action_label = models.CharField(max_length=100, null=True, blank=True)

    related_object_type = models.CharField(max_length=100, null=True, blank=True)
    related_object_id = models.CharField(max_length=100, null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='core_notifi_user_id_5b1c0e_idx'),
            models.Index(fields=['user', 'created_at'], name='core_notifi_user_id_8f2a41_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.user.email}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at'])


class NotificationLog(BaseModel):
    """
    Delivery record for one notification on one channel. E-mails sent
    without an in-app notification (e.g. to unregistered invitees) have
    no notification or user attached.
    """
    notification = models.ForeignKey(
        Notification,
        on_delete=models.CASCADE,
        related_name='delivery_logs',
        null=True,
        blank=True
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notification_logs',
        null=True,
        blank=True
    )

    channel = models.CharField(max_length=20, choices=DeliveryChannel.choices)
    status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING
    )

    recipient = models.CharField(max_length=255)
    subject = models.CharField(max_length=255, null=True, blank=True)
    content = models.TextField()

    sent_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    attempts = models.PositiveSmallIntegerField(default=0)
    error_message = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['channel', 'status'], name='core_notifi_channel_3d9e27_idx'),
        ]

    def __str__(self):
        return f"{self.channel} to {self.recipient} - {self.status}"
