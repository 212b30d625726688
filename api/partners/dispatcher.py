"""
Invitation Dispatcher
=====================
Tells an invitee they have been added to an account.

    existing user  -> in-app APPROVAL notification, mirrored by e-mail
    unknown e-mail -> "register to respond" e-mail with a token link

Delivery is fire-and-forget. The partner record is already saved when
dispatch runs, and nothing here raises back into the caller.
``invitation_sent`` reports whether the invitation e-mail was handed to
the worker, for existing users as well as unknown addresses.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from django.conf import settings
from django.utils.html import escape

from core.audit import AuditAction, write_audit_log
from core.services.notification_service import NotificationService
from users.services import find_user_by_email

from .models import PartnerInvitation

logger = logging.getLogger(__name__)


@dataclass
class InvitationContext:
    partner: object
    account: object
    inviter: object
    role: str = ''


@dataclass
class DispatchResult:
    existing_user: bool
    name: Optional[str] = None
    delivered: bool = True
    # Only populated in DEBUG so the flow can be exercised without a mailbox
    debug_token: Optional[str] = None

    def as_dict(self):
        data = {
            'is_existing_user': self.existing_user,
            'invitation_sent': self.delivered,
        }
        if self.existing_user:
            data['name'] = self.name
        if self.debug_token:
            data['debug_token'] = self.debug_token
        return data


class InvitationDispatcher:

    def __init__(self, notifications=NotificationService):
        self.notifications = notifications

    def dispatch(self, email: str, context: InvitationContext, request=None) -> DispatchResult:
        partner, account, inviter = context.partner, context.account, context.inviter
        inviter_name = inviter.display_name if inviter else account.owner.display_name
        role = context.role or partner.display_role or 'a partner'

        user = find_user_by_email(email)
        invitation, raw_token = PartnerInvitation.issue(partner.KIND, account, email, invited_by=inviter)

        try:
            if user is not None:
                notification = self.notifications.notify_partner_invitation(
                    user, partner, account, role, inviter_name
                )
                # The in-app copy is already stored
                delivered = self.notifications.send_email_notification(notification, user)
            else:
                delivered = self._send_registration_email(email, account, role, inviter_name, raw_token)
        except Exception as e:
            logger.error(f"Invitation delivery to partner {partner.pk} failed: {e}", exc_info=True)
            delivered = False

        if not delivered:
            logger.warning(f"Invitation for partner {partner.pk} was not delivered")

        write_audit_log(
            AuditAction.PARTNER_INVITED,
            user_id=getattr(inviter, 'pk', None),
            target_id=partner.pk,
            target_type=partner.__class__.__name__,
            request=request,
            details={
                'email': email,
                'accountId': str(account.pk),
                'existingUser': user is not None,
                'invitationId': str(invitation.pk),
            },
        )

        return DispatchResult(
            existing_user=user is not None,
            name=user.display_name if user else None,
            delivered=delivered,
            debug_token=raw_token if settings.DEBUG else None,
        )

    def _send_registration_email(self, email, account, role, inviter_name, raw_token) -> bool:
        link = NotificationService.absolute_url(
            '/register?' + urlencode({'invite': raw_token, 'email': email})
        )
        subject = f"You've been invited to {account.name}"
        text = (
            f"{inviter_name} has added you as {role} on {account.name}.\n\n"
            f"Create your account to approve or reject this request:\n{link}\n\n"
            f"This link expires in {settings.PARTNER_INVITATION_TTL_DAYS} days."
        )
        html = f"""
            <html>
            <body>
                <h2>{escape(subject)}</h2>
                <p>{escape(inviter_name)} has added you as {escape(role)} on {escape(account.name)}.</p>
                <p><a href="{escape(link)}">Register to respond</a></p>
                <p style="color: #666; font-size: 12px;">
                    This link expires in {settings.PARTNER_INVITATION_TTL_DAYS} days.
                </p>
            </body>
            </html>
            """
        return self.notifications.queue_email(to=email, subject=subject, text=text, html=html)
