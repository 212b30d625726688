"""
Approval State Machine
======================
Moves partner records through the invitation lifecycle:

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED
    APPROVED | REJECTED --new e-mail--> PENDING
    any (except REMOVED) --remove--> REMOVED

Only the invitee approves or rejects. The account owner may remove from
any state; the invitee may withdraw once approved. REMOVED is terminal:
the record can no longer be edited or re-invited.
"""
import logging
from typing import List

from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from core.audit import AuditAction, write_audit_log
from core.exceptions import AccessDenied, InvalidState, ValidationFailed
from core.services.notification_service import NotificationService
from users.services import normalize_email

from .models import PARTNER_MODELS, PartnerInvitation, PartnerStatus

logger = logging.getLogger(__name__)

TRANSITIONS = {
    PartnerStatus.PENDING: {PartnerStatus.APPROVED, PartnerStatus.REJECTED, PartnerStatus.REMOVED},
    PartnerStatus.APPROVED: {PartnerStatus.PENDING, PartnerStatus.REMOVED},
    PartnerStatus.REJECTED: {PartnerStatus.PENDING, PartnerStatus.REMOVED},
    PartnerStatus.REMOVED: set(),
}

RESPONSES = {
    'approve': (PartnerStatus.APPROVED, AuditAction.PARTNER_ACCEPTED),
    'reject': (PartnerStatus.REJECTED, AuditAction.PARTNER_REJECTED),
}


class ApprovalStateMachine:

    def __init__(self, notifications=NotificationService):
        self.notifications = notifications

    @staticmethod
    def can_transition(current, target) -> bool:
        return target in TRANSITIONS.get(current, set())

    @staticmethod
    def is_invitee(partner, user) -> bool:
        if partner.user_id is not None and partner.user_id == user.pk:
            return True
        return normalize_email(partner.email) == normalize_email(user.email)

    def respond(self, partner, user, action: str, request=None):
        if action not in RESPONSES:
            raise ValidationFailed(_('Action must be "approve" or "reject".'))
        if not self.is_invitee(partner, user):
            raise AccessDenied(_('This invitation is not for you'))
        target, audit_action = RESPONSES[action]
        if not self.can_transition(partner.status, target):
            raise InvalidState(_('Invitation already responded'))

        partner.status = target
        partner.responded_at = timezone.now()
        partner.user = user
        partner.save(update_fields=['status', 'responded_at', 'user', 'updated_at'])

        write_audit_log(
            audit_action,
            user_id=user.pk,
            target_id=partner.pk,
            target_type=partner.__class__.__name__,
            request=request,
            details={'accountId': str(partner.account_id)},
        )
        self._notify_owner(partner, approved=target == PartnerStatus.APPROVED)
        return partner

    def remove(self, partner, actor, request=None):
        is_owner = partner.account.is_owned_by(actor)
        if not is_owner and not self.is_invitee(partner, actor):
            raise AccessDenied()
        if not self.can_transition(partner.status, PartnerStatus.REMOVED):
            raise InvalidState(_('Partner has already been removed.'))
        if not is_owner and partner.status != PartnerStatus.APPROVED:
            raise InvalidState(_('Only approved memberships can be withdrawn.'))

        old_status = partner.status
        partner.status = PartnerStatus.REMOVED
        partner.save(update_fields=['status', 'updated_at'])

        write_audit_log(
            AuditAction.PARTNER_REMOVED,
            user_id=actor.pk,
            target_id=partner.pk,
            target_type=partner.__class__.__name__,
            request=request,
            details={'from': old_status, 'byOwner': is_owner},
        )
        return partner

    @staticmethod
    def assert_editable(partner):
        if not TRANSITIONS.get(partner.status):
            raise InvalidState(_('Removed partners cannot be edited.'))

    def reinvite(self, partner, email: str):
        """
        Point the record at a new address. Any earlier answer belonged to the
        old address, so the record goes back to PENDING; the caller saves it
        and dispatches a fresh invitation.
        """
        if partner.status != PartnerStatus.PENDING and not self.can_transition(
            partner.status, PartnerStatus.PENDING
        ):
            raise InvalidState(_('Removed partners cannot be edited.'))
        partner.email = email
        partner.status = PartnerStatus.PENDING
        partner.user = None
        partner.responded_at = None
        partner.invited_at = timezone.now()
        return ['email', 'status', 'user', 'responded_at', 'invited_at']

    @staticmethod
    def assert_resendable(partner):
        if partner.status != PartnerStatus.PENDING:
            raise InvalidState(_('Only pending invitations can be resent.'))

    @staticmethod
    def verify_token(email: str, token: str) -> PartnerInvitation:
        invitation = PartnerInvitation.find_valid(email, token)
        if invitation is None:
            raise ValidationFailed(_('Invalid or expired invitation'))
        return invitation

    def accept_with_token(self, user, email: str, token: str, request=None) -> List:
        """
        Accept an invitation from its e-mailed token, approving every pending
        record of that kind for the caller on the invited account. The token
        stays usable when no pending record is left to approve.
        """
        if normalize_email(email) != normalize_email(user.email):
            raise AccessDenied(_('Email does not match authenticated user'))
        invitation = self.verify_token(email, token)
        model = PARTNER_MODELS[invitation.kind]
        now = timezone.now()

        with transaction.atomic():
            partners = list(
                model.objects.select_for_update().select_related('account', 'account__owner').filter(
                    account_id=invitation.account_id,
                    email=normalize_email(email),
                    status=PartnerStatus.PENDING,
                )
            )
            if not partners:
                return []
            invitation.accepted_at = now
            invitation.save(update_fields=['accepted_at', 'updated_at'])
            for partner in partners:
                partner.status = PartnerStatus.APPROVED
                partner.user = user
                partner.responded_at = now
                partner.save(update_fields=['status', 'user', 'responded_at', 'updated_at'])

        for partner in partners:
            write_audit_log(
                AuditAction.PARTNER_ACCEPTED,
                user_id=user.pk,
                target_id=partner.pk,
                target_type=partner.__class__.__name__,
                request=request,
                details={'accountId': str(partner.account_id), 'viaToken': True},
            )
            self._notify_owner(partner, approved=True)
        return partners

    def _notify_owner(self, partner, approved: bool):
        try:
            self.notifications.notify_partner_response(partner.account.owner, partner, approved)
        except Exception as e:
            logger.error(f"Could not notify owner about partner {partner.pk}: {e}", exc_info=True)
