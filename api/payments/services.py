"""
Payment Service
===============
Checkout creation, verification and the paid transition of a purchase.

The paid transition is shared by the verify endpoint and the webhook and
is safe to apply more than once.
"""
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from catalogue.gate import PurchaseGate, set_purchase_status
from catalogue.models import AccountService, PaymentStatus, PurchaseStatus
from core.audit import AuditAction, write_audit_log
from core.exceptions import AccessDenied, InvalidState, ResourceNotFound, ValidationFailed
from core.services.notification_service import NotificationService

from .gateway import StripeGateway

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    @property
    def total_cents(self) -> int:
        return int((self.total * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def payment_settings():
    return {
        'gateway': settings.PAYMENT_GATEWAY,
        'enabled': bool(settings.STRIPE_SECRET_KEY),
        'publishable_key': settings.STRIPE_PUBLISHABLE_KEY,
        'currency': settings.PAYMENT_CURRENCY.upper(),
        'tax_rate': Decimal(str(settings.PAYMENT_TAX_RATE)),
        'tax_inclusive': settings.PAYMENT_TAX_INCLUSIVE,
    }


def price_with_tax(price: Decimal, tax_rate=None, inclusive=None) -> PriceBreakdown:
    """
    Inclusive prices already contain the tax, which is extracted;
    exclusive prices have it added on top.
    """
    rate = Decimal(str(settings.PAYMENT_TAX_RATE if tax_rate is None else tax_rate)) / 100
    inclusive = settings.PAYMENT_TAX_INCLUSIVE if inclusive is None else inclusive
    price = Decimal(price)
    if inclusive:
        subtotal = (price / (1 + rate)).quantize(CENT, rounding=ROUND_HALF_UP)
        tax = price - subtotal
    else:
        subtotal = price
        tax = (price * rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return PriceBreakdown(subtotal=subtotal, tax=tax, total=subtotal + tax)


def get_owned_purchase(user, purchase_id) -> AccountService:
    try:
        purchase = AccountService.objects.select_related('account', 'account__owner', 'service').get(
            pk=uuid.UUID(str(purchase_id))
        )
    except (ValueError, AccountService.DoesNotExist):
        raise ResourceNotFound(_('Purchase not found.'))
    if not purchase.account.is_owned_by(user):
        raise AccessDenied()
    return purchase


def create_checkout(user, account_id, service_id, financial_year=None, notes='',
                    success_url=None, cancel_url=None, request=None, gateway=None):
    gateway = gateway or StripeGateway()
    if not gateway.is_configured:
        raise ValidationFailed(_('Online payment is not available.'))

    gate = PurchaseGate()
    quote = gate.quote(user, account_id, service_id, financial_year, request=request)
    breakdown = price_with_tax(quote.price)
    currency = settings.PAYMENT_CURRENCY.upper()

    purchase = gate.purchase(
        user, account_id, service_id,
        financial_year=financial_year,
        notes=notes,
        request=request,
        payment_method='stripe',
        payment_amount=breakdown.total,
        tax_amount=breakdown.tax,
        currency=currency,
    )

    success_url = success_url or f"{settings.FRONTEND_URL}/user-dashboard/services/success"
    cancel_url = cancel_url or f"{settings.FRONTEND_URL}/user-dashboard/services"
    try:
        session = gateway.create_checkout_session(
            amount_cents=breakdown.total_cents,
            currency=currency,
            product_name=quote.service.name,
            description=quote.service.description or f"Service for {quote.account.name}",
            customer_email=user.email,
            metadata={
                'purchase_id': str(purchase.pk),
                'account_id': str(quote.account.pk),
                'service_id': str(quote.service.pk),
                'user_id': str(user.pk),
                'financial_year': purchase.financial_year,
            },
            success_url=f"{success_url}?session_id={{CHECKOUT_SESSION_ID}}&purchase_id={purchase.pk}",
            cancel_url=f"{cancel_url}?purchase_id={purchase.pk}",
        )
    except Exception:
        # No session means nothing can ever pay for this row
        purchase.delete()
        raise

    purchase.stripe_session_id = session.id
    purchase.save(update_fields=['stripe_session_id', 'updated_at'])
    return purchase, session, breakdown


def mark_paid(purchase_id, payment_intent='', request=None):
    """
    Record a completed payment and start work on the purchase.
    Returns ``(purchase, changed)``; a purchase that is already PAID is left alone.
    """
    with transaction.atomic():
        try:
            purchase = AccountService.objects.select_for_update().get(pk=uuid.UUID(str(purchase_id)))
        except (ValueError, AccountService.DoesNotExist):
            return None, False
        if purchase.payment_status == PaymentStatus.PAID:
            return purchase, False

        purchase.payment_status = PaymentStatus.PAID
        purchase.paid_at = timezone.now()
        purchase.transaction_id = payment_intent or ''
        purchase.save(update_fields=['payment_status', 'paid_at', 'transaction_id', 'updated_at'])

        if purchase.status in (PurchaseStatus.PENDING, PurchaseStatus.CONSENT_REQUIRED):
            set_purchase_status(purchase, PurchaseStatus.IN_PROGRESS, request=request)

    write_audit_log(
        AuditAction.PAYMENT_COMPLETED,
        target_id=purchase.pk,
        target_type='AccountService',
        request=request,
        details={'amount': str(purchase.payment_amount), 'transactionId': purchase.transaction_id},
    )
    try:
        NotificationService.notify_payment_received(purchase.account.owner, purchase)
    except Exception as e:
        logger.error(f"Could not notify payment for purchase {purchase.pk}: {e}", exc_info=True)
    return purchase, True


def verify_checkout(user, purchase_id, session_id, request=None, gateway=None):
    gateway = gateway or StripeGateway()
    purchase = get_owned_purchase(user, purchase_id)
    if not purchase.stripe_session_id or purchase.stripe_session_id != session_id:
        raise ValidationFailed(_('Session does not match this purchase.'))

    session = gateway.retrieve_session(session_id)
    if session.payment_status == 'paid':
        purchase, _changed = mark_paid(purchase.pk, session.payment_intent or '', request=request)
        return purchase, True, session.payment_status
    return purchase, False, session.payment_status


def cancel_checkout(user, purchase_id, request=None):
    purchase = get_owned_purchase(user, purchase_id)
    if purchase.payment_status == PaymentStatus.PAID:
        raise InvalidState(_('Paid purchases cannot be cancelled.'))
    purchase_pk = purchase.pk
    purchase.delete()
    logger.info(f"Cancelled unpaid purchase {purchase_pk}")
    return purchase_pk
