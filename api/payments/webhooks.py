"""
Stripe Webhook Handlers
=======================
Every handler tolerates redelivery and unknown purchases.

An ``expired`` event can arrive after the session was paid through the
verify endpoint, so expiry only ever deletes unpaid purchases.
"""
import logging
import uuid

from catalogue.models import AccountService, PaymentStatus
from core.audit import AuditAction, write_audit_log

from .services import mark_paid

logger = logging.getLogger(__name__)


def _purchase_id(obj):
    raw = (obj.get('metadata') or {}).get('purchase_id')
    try:
        return uuid.UUID(str(raw)) if raw else None
    except ValueError:
        return None


def handle_checkout_completed(obj, request=None):
    purchase_id = _purchase_id(obj)
    if purchase_id is None or obj.get('payment_status') != 'paid':
        return
    purchase, changed = mark_paid(purchase_id, obj.get('payment_intent') or '', request=request)
    if purchase is None:
        logger.warning(f"Completed checkout for unknown purchase {purchase_id}")
    elif not changed:
        logger.info(f"Purchase {purchase_id} already paid; duplicate event ignored")


def handle_checkout_expired(obj, request=None):
    purchase_id = _purchase_id(obj)
    if purchase_id is None:
        return
    deleted, _ = AccountService.objects.filter(pk=purchase_id).exclude(
        payment_status=PaymentStatus.PAID
    ).delete()
    if deleted:
        logger.info(f"Checkout expired, deleted purchase {purchase_id}")


def handle_payment_failed(obj, request=None):
    # Payment intents carry the checkout metadata
    purchase_id = _purchase_id(obj)
    if purchase_id is not None:
        purchase = AccountService.objects.filter(pk=purchase_id).first()
    else:
        purchase = AccountService.objects.filter(transaction_id=obj.get('id') or '').first()
    if purchase is None or purchase.payment_status == PaymentStatus.PAID:
        return
    purchase.payment_status = PaymentStatus.FAILED
    purchase.save(update_fields=['payment_status', 'updated_at'])
    write_audit_log(
        AuditAction.PAYMENT_FAILED,
        target_id=purchase.pk,
        target_type='AccountService',
        request=request,
        details={'transactionId': purchase.transaction_id},
    )


def handle_charge_refunded(obj, request=None):
    purchase = AccountService.objects.filter(transaction_id=obj.get('payment_intent') or '').first()
    if purchase is None:
        return
    full_refund = obj.get('amount_refunded') == obj.get('amount')
    purchase.payment_status = PaymentStatus.REFUNDED if full_refund else PaymentStatus.PARTIAL_REFUND
    purchase.save(update_fields=['payment_status', 'updated_at'])
    write_audit_log(
        AuditAction.PAYMENT_REFUNDED,
        target_id=purchase.pk,
        target_type='AccountService',
        request=request,
        details={'status': purchase.payment_status, 'amountRefunded': obj.get('amount_refunded')},
    )


EVENT_HANDLERS = {
    'checkout.session.completed': handle_checkout_completed,
    'checkout.session.expired': handle_checkout_expired,
    'payment_intent.payment_failed': handle_payment_failed,
    'charge.refunded': handle_charge_refunded,
}


def handle_event(event: dict, request=None) -> bool:
    """Route a verified event to its handler. Returns False for ignored event types."""
    handler = EVENT_HANDLERS.get(event.get('type'))
    if handler is None:
        logger.debug(f"Ignoring Stripe event {event.get('type')}")
        return False
    handler(event.get('data', {}).get('object', {}), request=request)
    return True
