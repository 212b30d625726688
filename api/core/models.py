import uuid
from django.db import models


class BaseModel(models.Model):
    id = models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True


# Notification models live in their own module; import them here so
# Django registers them under the core app.
from core.models_notifications import (  # noqa: E402,F401
    Notification,
    NotificationLog,
    NotificationType,
    NotificationCategory,
    NotificationPriority,
)

__all__ = [
    'BaseModel',
    'Notification',
    'NotificationLog',
    'NotificationType',
    'NotificationCategory',
    'NotificationPriority',
]
