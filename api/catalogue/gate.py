"""
Service Purchase Gate
=====================
Validates a purchase request and decides its initial workflow status:

    requires_consent and consents missing  ->  CONSENT_REQUIRED
    otherwise                              ->  PENDING

Payment callbacks move a purchase on later; they are handled in the
payments app and do not come back through this gate.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from accounts.models import AccountStatus
from accounts.services import get_owned_account
from consents.resolver import has_required_consents
from core.audit import AuditAction, write_audit_log
from core.exceptions import Conflict, InvalidState, ResourceNotFound, ValidationFailed

from .models import AccountService, PurchaseStatus, Service

logger = logging.getLogger(__name__)

ACTIVATING_STATUSES = (PurchaseStatus.IN_PROGRESS, PurchaseStatus.COMPLETED)


@dataclass
class PurchaseQuote:
    """A validated purchase request, before anything is written."""
    account: object
    service: Service
    price: Decimal
    financial_year: str
    initial_status: str


class PurchaseGate:

    def __init__(self, consent_check=has_required_consents):
        self.consent_check = consent_check

    def quote(self, user, account_id, service_id, financial_year: Optional[str] = None, request=None) -> PurchaseQuote:
        """Run every purchase check in order and work out price and status."""
        account = get_owned_account(user, account_id, request=request)
        if account.status != AccountStatus.ACTIVE:
            raise InvalidState(_('Account must be active to purchase services.'))

        service = self._get_service(service_id)
        if not service.is_active:
            raise InvalidState(_('Service is not available.'))
        if not service.allows(account.account_type):
            raise ValidationFailed(_('Service not available for this account type.'))

        financial_year = (financial_year or '').strip()
        if self.has_service(account, service, financial_year):
            raise Conflict(_('Service already purchased for this financial year.'))

        price = service.price_for(account.account_type)
        if price is None:
            raise ValidationFailed(_('Price not set for this account type.'))

        initial_status = PurchaseStatus.PENDING
        if service.requires_consent and not self.consent_check(account):
            initial_status = PurchaseStatus.CONSENT_REQUIRED

        return PurchaseQuote(account, service, price, financial_year, initial_status)

    def purchase(self, user, account_id, service_id, financial_year=None, notes='', request=None, **payment_fields):
        quote = self.quote(user, account_id, service_id, financial_year, request=request)
        try:
            with transaction.atomic():
                purchase = AccountService.objects.create(
                    account=quote.account,
                    service=quote.service,
                    price=quote.price,
                    financial_year=quote.financial_year,
                    notes=notes or '',
                    status=quote.initial_status,
                    **payment_fields,
                )
        except IntegrityError:
            # Lost a race with an identical request
            raise Conflict(_('Service already purchased for this financial year.'))

        write_audit_log(
            AuditAction.SERVICE_PURCHASED,
            user_id=user.pk,
            target_id=purchase.pk,
            target_type='AccountService',
            request=request,
            details={
                'accountId': str(quote.account.pk),
                'serviceCode': quote.service.code,
                'financialYear': quote.financial_year,
                'status': quote.initial_status,
            },
        )
        return purchase

    @staticmethod
    def has_service(account, service, financial_year: str = '') -> bool:
        """
        A blank financial year matches any existing purchase of the service;
        a given year only matches that year.
        """
        existing = AccountService.objects.filter(account=account, service=service).exclude(
            status=PurchaseStatus.CANCELLED
        )
        if financial_year:
            existing = existing.filter(financial_year=financial_year)
        return existing.exists()

    @staticmethod
    def _get_service(service_id) -> Service:
        try:
            return Service.objects.get(pk=uuid.UUID(str(service_id)))
        except (ValueError, Service.DoesNotExist):
            raise ResourceNotFound(_('Service not found.'))


def set_purchase_status(purchase, new_status, user=None, request=None):
    """Admin or payment driven workflow change with activation timestamps."""
    if new_status not in PurchaseStatus.values:
        raise ValidationFailed(_('Unknown service status.'))
    old_status = purchase.status
    purchase.status = new_status
    now = timezone.now()
    if new_status in ACTIVATING_STATUSES and purchase.activated_at is None:
        purchase.activated_at = now
    if new_status == PurchaseStatus.COMPLETED:
        purchase.completed_at = now
    purchase.save(update_fields=['status', 'activated_at', 'completed_at', 'updated_at'])

    write_audit_log(
        AuditAction.SERVICE_STATUS_CHANGED,
        user_id=getattr(user, 'pk', None),
        target_id=purchase.pk,
        target_type='AccountService',
        request=request,
        details={'from': old_status, 'to': new_status},
    )
    return purchase


def release_consent_held_purchases(account) -> int:
    """Move CONSENT_REQUIRED purchases to PENDING once consents are complete."""
    if not has_required_consents(account):
        return 0
    released = AccountService.objects.filter(
        account=account, status=PurchaseStatus.CONSENT_REQUIRED
    ).update(status=PurchaseStatus.PENDING, updated_at=timezone.now())
    if released:
        logger.info(f"Released {released} consent-held purchase(s) for account {account.pk}")
    return released
