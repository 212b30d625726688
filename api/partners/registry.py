"""
Partner Registry
================
Owner-side management of partner records, one registry per partner kind.

Registries are built once in ``PartnersConfig.ready()`` and share a single
dispatcher and state machine:

    from django.apps import apps
    registry = apps.get_app_config('partners').registries['company']
    partner, result = registry.add_partner(request.user, account_id, data, request=request)
"""
import logging
import uuid
from typing import Dict, List, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils.translation import gettext as _

from accounts.models import AccountType
from accounts.services import get_owned_account
from core.audit import AuditAction, write_audit_log
from core.exceptions import AccessDenied, Conflict, ResourceNotFound, ValidationFailed
from users.services import find_user_by_email, normalize_email

from .dispatcher import DispatchResult, InvitationContext
from .models import PARTNER_MODELS, PartnerStatus

logger = logging.getLogger(__name__)


class PartnerRegistry:

    def __init__(self, model, dispatcher, state_machine):
        self.model = model
        self.dispatcher = dispatcher
        self.state_machine = state_machine

    @property
    def kind(self):
        return self.model.KIND

    def get_partner(self, partner_id):
        try:
            return self.model.objects.select_related('account', 'account__owner').get(
                pk=uuid.UUID(str(partner_id))
            )
        except (ValueError, self.model.DoesNotExist):
            raise ResourceNotFound(_('Partner not found.'))

    def get_owned_partner(self, owner, partner_id, request=None):
        partner = self.get_partner(partner_id)
        if not partner.account.is_owned_by(owner):
            write_audit_log(
                AuditAction.ACCESS_DENIED,
                user_id=owner.pk,
                target_id=partner.pk,
                target_type=self.model.__name__,
                request=request,
            )
            raise AccessDenied()
        return partner

    def list_partners(self, owner, account_id, request=None):
        account = get_owned_account(owner, account_id, request=request)
        return self.model.objects.filter(account=account).select_related('account')

    def add_partner(self, owner, account_id, data: Dict, request=None) -> Tuple[object, DispatchResult]:
        account = get_owned_account(owner, account_id, request=request)
        if account.account_type != self.model.ACCOUNT_TYPE:
            raise ValidationFailed(
                _('%(kind)s can only be added to %(type)s accounts.') % {
                    'kind': self.model._meta.verbose_name_plural.capitalize(),
                    'type': AccountType(self.model.ACCOUNT_TYPE).label.lower(),
                }
            )

        email = normalize_email(data.get('email'))
        self._validate_email(account, email)
        fields = {k: v for k, v in data.items() if k in self.model.EDITABLE_FIELDS}

        try:
            with transaction.atomic():
                partner = self.model.objects.create(
                    account=account,
                    email=email,
                    status=PartnerStatus.PENDING,
                    invited_by=owner,
                    **fields,
                )
        except IntegrityError:
            raise Conflict(_('Partner already added'))

        logger.info(f"{self.model.__name__} {partner.pk} added to account {account.pk}")
        result = self._dispatch(partner, owner, request)
        return partner, result

    def update_partner(self, owner, partner_id, data: Dict, request=None) -> Tuple[object, Optional[DispatchResult]]:
        partner = self.get_owned_partner(owner, partner_id, request=request)
        self.state_machine.assert_editable(partner)
        changed = []

        email = normalize_email(data['email']) if data.get('email') else None
        email_changed = email is not None and email != partner.email
        if email_changed:
            self._validate_email(partner.account, email, exclude_pk=partner.pk)
            changed += self.state_machine.reinvite(partner, email)

        for field in self.model.EDITABLE_FIELDS:
            if field in data:
                setattr(partner, field, data[field])
                changed.append(field)

        if not changed:
            return partner, None

        try:
            with transaction.atomic():
                partner.save(update_fields=[*dict.fromkeys(changed), 'updated_at'])
        except IntegrityError:
            raise Conflict(_('Partner already added'))

        write_audit_log(
            AuditAction.PARTNER_UPDATED,
            user_id=owner.pk,
            target_id=partner.pk,
            target_type=self.model.__name__,
            request=request,
            details={'fields': sorted(set(changed)), 'emailChanged': email_changed},
        )

        result = self._dispatch(partner, owner, request) if email_changed else None
        return partner, result

    def remove_partner(self, owner, partner_id, request=None):
        """Hard delete. The REST layer asks for explicit confirmation first."""
        partner = self.get_owned_partner(owner, partner_id, request=request)
        partner_pk, account_id = partner.pk, partner.account_id
        partner.delete()
        write_audit_log(
            AuditAction.PARTNER_DELETED,
            user_id=owner.pk,
            target_id=partner_pk,
            target_type=self.model.__name__,
            request=request,
            details={'accountId': str(account_id)},
        )

    def resend(self, owner, partner_id, request=None) -> Tuple[object, DispatchResult]:
        partner = self.get_owned_partner(owner, partner_id, request=request)
        self.state_machine.assert_resendable(partner)
        return partner, self._dispatch(partner, owner, request)

    def _validate_email(self, account, email: str, exclude_pk=None):
        if not email:
            raise ValidationFailed(_('Email is required.'))
        if email == normalize_email(account.owner.email):
            raise ValidationFailed(_('You cannot add yourself as a partner.'))
        existing = self.model.objects.filter(account=account, email=email).exclude(status=PartnerStatus.REMOVED)
        if exclude_pk is not None:
            existing = existing.exclude(pk=exclude_pk)
        if existing.exists():
            raise Conflict(_('Partner already added'))

    def _dispatch(self, partner, owner, request) -> DispatchResult:
        context = InvitationContext(
            partner=partner,
            account=partner.account,
            inviter=owner,
            role=partner.display_role,
        )
        return self.dispatcher.dispatch(partner.email, context, request=request)


def pending_for_user(user) -> List:
    """PENDING invitations addressed to ``user`` across every partner kind, newest first."""
    email = normalize_email(user.email)
    pending = []
    for model in PARTNER_MODELS.values():
        pending.extend(
            model.objects.filter(status=PartnerStatus.PENDING)
            .filter(Q(email=email) | Q(user=user))
            .select_related('account', 'account__owner')
        )
    return sorted(pending, key=lambda p: p.invited_at, reverse=True)


def check_email(email: str) -> Dict:
    user = find_user_by_email(email)
    return {'exists': user is not None, 'name': user.full_name if user else None}
