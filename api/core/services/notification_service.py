"""
Notification Service
====================
Service layer for creating in-app notifications and queueing e-mails.
"""
import logging
from typing import List, Optional, Dict, Any
from django.conf import settings
from django.db.models import Count
from django.utils import timezone
from django.utils.html import escape

from core.models_notifications import (
    Notification, NotificationLog,
    NotificationType, NotificationCategory, NotificationPriority,
    DeliveryChannel, DeliveryStatus,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for creating and managing notifications
    """

    @classmethod
    def create_notification(
        cls,
        user,
        title: str,
        message: str,
        notification_type: str = NotificationType.INFO,
        category: str = NotificationCategory.SYSTEM,
        priority: str = NotificationPriority.NORMAL,
        action_url: Optional[str] = None,
        action_label: Optional[str] = None,
        related_object_type: Optional[str] = None,
        related_object_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        send_email: bool = False,
    ) -> Notification:
        """
        Create a new notification for a user, optionally mirrored by e-mail.
        """
        notification = Notification.objects.create(
            user=user,
            title=title,
            message=message,
            notification_type=notification_type,
            category=category,
            priority=priority,
            action_url=action_url,
            action_label=action_label,
            related_object_type=related_object_type,
            related_object_id=related_object_id,
            metadata=metadata or {},
        )

        NotificationLog.objects.create(
            notification=notification,
            user=user,
            channel=DeliveryChannel.IN_APP,
            status=DeliveryStatus.DELIVERED,
            recipient=str(user.id),
            content=message,
            delivered_at=timezone.now()
        )

        if send_email:
            cls.send_email_notification(notification, user)

        return notification

    @classmethod
    def send_email_notification(cls, notification: Notification, user) -> bool:
        subject = notification.title
        link = cls.absolute_url(notification.action_url) if notification.action_url else None

        html_message = f"""
            <html>
            <body>
                <h2>{escape(notification.title)}</h2>
                <p>{escape(notification.message)}</p>
                {f'<p><a href="{escape(link)}">{escape(notification.action_label or "View Details")}</a></p>' if link else ''}
                <hr>
                <p style="color: #666; font-size: 12px;">
                    This is an automated notification from the client portal.
                </p>
            </body>
            </html>
            """

        plain_message = f"{notification.title}\n\n{notification.message}"
        if link:
            plain_message += f"\n\nView: {link}"

        return cls.queue_email(
            to=user.email,
            subject=subject,
            text=plain_message,
            html=html_message,
            notification=notification,
            user=user,
        )

    @classmethod
    def queue_email(cls, to: str, subject: str, text: str, html: str = '', notification=None, user=None) -> bool:
        """
        Hand an e-mail to the background worker.

        Returns False when the task could not be submitted (broker down);
        the failure is recorded on the delivery log and never raised.
        """
        from core.tasks import deliver_email

        log = NotificationLog.objects.create(
            notification=notification,
            user=user,
            channel=DeliveryChannel.EMAIL,
            status=DeliveryStatus.QUEUED,
            recipient=to,
            subject=subject,
            content=text,
        )
        try:
            deliver_email.delay(to=to, subject=subject, text=text, html=html, log_id=str(log.id))
        except Exception as e:
            logger.error(f"Could not queue email '{subject}': {e}", exc_info=True)
            log.status = DeliveryStatus.FAILED
            log.error_message = str(e)
            log.save(update_fields=['status', 'error_message', 'updated_at'])
            return False
        return True

    @staticmethod
    def absolute_url(path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{settings.FRONTEND_URL}{path}"

    @classmethod
    def mark_as_read(cls, notification_ids: List[str], user) -> int:
        return Notification.objects.filter(
            id__in=notification_ids,
            user=user,
            is_read=False
        ).update(
            is_read=True,
            read_at=timezone.now()
        )

    @classmethod
    def mark_all_as_read(cls, user) -> int:
        return Notification.objects.filter(
            user=user,
            is_read=False
        ).update(
            is_read=True,
            read_at=timezone.now()
        )

    @classmethod
    def get_unread_count(cls, user) -> int:
        return Notification.objects.filter(user=user, is_read=False).count()

    @classmethod
    def unread_summary(cls, user) -> dict:
        unread = Notification.objects.filter(user=user, is_read=False)
        by_category = dict(
            unread.values('category').annotate(count=Count('id')).values_list('category', 'count')
        )
        return {
            'unread': sum(by_category.values()),
            'approvals': unread.filter(notification_type=NotificationType.APPROVAL).count(),
            'by_category': by_category,
        }

    # Convenience methods for the portal's notification types

    @classmethod
    def notify_partner_invitation(cls, user, partner, account, role: str, inviter_name: str):
        """Ask an existing user to approve or reject a partner invitation"""
        return cls.create_notification(
            user=user,
            title="Approval Required",
            message=(
                f"{inviter_name} has added you as {role} on {account.name}. "
                f"Please approve or reject this request."
            ),
            notification_type=NotificationType.APPROVAL,
            category=NotificationCategory.PARTNERS,
            priority=NotificationPriority.HIGH,
            related_object_type=partner.__class__.__name__,
            related_object_id=str(partner.id),
            action_url="/user-dashboard/invitations",
            action_label="Review",
            metadata={'account_id': str(account.id), 'kind': partner.KIND},
        )

    @classmethod
    def notify_partner_response(cls, owner, partner, approved: bool):
        """Tell the account owner how an invitee responded"""
        who = partner.name or partner.email
        verb = "approved" if approved else "rejected"
        return cls.create_notification(
            user=owner,
            title=f"Invitation {verb.capitalize()}",
            message=f"{who} has {verb} your invitation for {partner.account.name}.",
            notification_type=NotificationType.SUCCESS if approved else NotificationType.WARNING,
            category=NotificationCategory.PARTNERS,
            related_object_type=partner.__class__.__name__,
            related_object_id=str(partner.id),
            action_url=f"/user-dashboard/accounts/{partner.account_id}",
            action_label="View Account",
        )

    @classmethod
    def notify_payment_received(cls, user, purchase):
        return cls.create_notification(
            user=user,
            title="Payment Received",
            message=f"Payment for {purchase.service.name} on {purchase.account.name} has been received.",
            notification_type=NotificationType.PAYMENT,
            category=NotificationCategory.PAYMENTS,
            related_object_type='AccountService',
            related_object_id=str(purchase.id),
            action_url="/user-dashboard/services",
            action_label="View Services",
        )
