"""
Account Service
===============
Ownership guard and lifecycle transitions for tax-entity accounts.

Lifecycle:
    DRAFT --submit--> PENDING --admin approval--> ACTIVE
    any (except CLOSED) --close--> CLOSED --reopen--> DRAFT
    ACTIVE <--admin--> SUSPENDED
"""
import logging
import uuid

from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from core.audit import AuditAction, write_audit_log
from core.exceptions import AccessDenied, InvalidState, ResourceNotFound, ValidationFailed

from .models import Account, AccountStatus, AccountType, PROFILE_MODELS

logger = logging.getLogger(__name__)


def get_owned_account(user, account_id, request=None) -> Account:
    """
    Load an account and check the caller owns it.

    Raises ResourceNotFound for unknown or malformed ids and AccessDenied
    when the account belongs to someone else.
    """
    try:
        account = Account.objects.select_related('owner').get(pk=uuid.UUID(str(account_id)))
    except (ValueError, Account.DoesNotExist):
        raise ResourceNotFound(_('Account not found.'))

    if not account.is_owned_by(user):
        write_audit_log(
            AuditAction.ACCESS_DENIED,
            user_id=getattr(user, 'pk', None),
            target_id=account.pk,
            target_type='Account',
            request=request,
        )
        raise AccessDenied()
    return account


@transaction.atomic
def create_account(owner, name: str, account_type: str, profile_data=None, request=None) -> Account:
    if account_type not in AccountType.values:
        raise ValidationFailed(_('Unknown account type.'))

    is_first = not Account.objects.filter(owner=owner).exists()
    account = Account.objects.create(
        owner=owner,
        name=name,
        account_type=account_type,
        is_default=is_first,
    )
    PROFILE_MODELS[account_type].objects.create(account=account, **(profile_data or {}))

    write_audit_log(
        AuditAction.ACCOUNT_CREATED,
        user_id=owner.pk,
        target_id=account.pk,
        target_type='Account',
        request=request,
        details={'accountType': account_type},
    )
    return account


def _change_status(account, new_status, action, user, request=None, **timestamps):
    old_status = account.status
    account.status = new_status
    for field, value in timestamps.items():
        setattr(account, field, value)
    account.save(update_fields=['status', 'updated_at', *timestamps.keys()])

    write_audit_log(
        action,
        user_id=user.pk,
        target_id=account.pk,
        target_type='Account',
        request=request,
        details={'from': old_status, 'to': new_status},
    )
    logger.info(f"Account {account.pk} status {old_status} -> {new_status}")
    return account


def submit_account(account, user, request=None):
    if account.status != AccountStatus.DRAFT:
        raise InvalidState(_('Only draft accounts can be submitted.'))
    return _change_status(
        account, AccountStatus.PENDING, AuditAction.ACCOUNT_SUBMITTED, user, request,
        submitted_at=timezone.now(),
    )


def close_account(account, user, request=None):
    if account.status == AccountStatus.CLOSED:
        raise InvalidState(_('Account is already closed.'))
    return _change_status(
        account, AccountStatus.CLOSED, AuditAction.ACCOUNT_CLOSED_BY_USER, user, request,
        closed_at=timezone.now(),
    )


def reopen_account(account, user, request=None):
    if account.status != AccountStatus.CLOSED:
        raise InvalidState(_('Only closed accounts can be reopened.'))
    return _change_status(
        account, AccountStatus.DRAFT, AuditAction.ACCOUNT_REOPENED_BY_USER, user, request,
        closed_at=None,
    )


def delete_account(account, user, request=None):
    """Hard delete. Partners, consents and purchases go with it."""
    account_id, account_type = account.pk, account.account_type
    account.delete()
    write_audit_log(
        AuditAction.ACCOUNT_PERMANENTLY_DELETED,
        user_id=user.pk,
        target_id=account_id,
        target_type='Account',
        request=request,
        details={'accountType': account_type},
    )


@transaction.atomic
def set_default_account(account):
    Account.objects.filter(owner_id=account.owner_id, is_default=True).exclude(pk=account.pk).update(is_default=False)
    if not account.is_default:
        account.is_default = True
        account.save(update_fields=['is_default', 'updated_at'])
    return account


def admin_set_status(account, new_status, admin_user, request=None):
    if new_status not in AccountStatus.values:
        raise ValidationFailed(_('Unknown account status.'))
    extra = {}
    if new_status == AccountStatus.CLOSED and account.closed_at is None:
        extra['closed_at'] = timezone.now()
    return _change_status(account, new_status, AuditAction.ACCOUNT_STATUS_CHANGED, admin_user, request, **extra)
