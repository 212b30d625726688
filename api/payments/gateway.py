"""
Stripe Gateway
==============
Thin wrapper over the Stripe SDK. Keys are passed per call so nothing
mutates the global ``stripe.api_key``.
"""
import json
import logging

import stripe
from django.conf import settings
from django.utils.translation import gettext as _

from core.exceptions import ServiceError, ValidationFailed

logger = logging.getLogger(__name__)


class GatewayNotConfigured(ServiceError):
    default_detail = 'Payment gateway is not configured.'
    default_code = 'payment_not_configured'


class GatewayError(ServiceError):
    status_code = 502
    default_detail = 'Payment gateway request failed.'
    default_code = 'payment_gateway_error'


class StripeGateway:

    def __init__(self, secret_key=None, webhook_secret=None):
        self.secret_key = settings.STRIPE_SECRET_KEY if secret_key is None else secret_key
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _require_key(self):
        if not self.is_configured:
            raise GatewayNotConfigured()

    def create_checkout_session(self, *, amount_cents, currency, product_name, description,
                                customer_email, metadata, success_url, cancel_url):
        self._require_key()
        try:
            return stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode='payment',
                customer_email=customer_email,
                line_items=[{
                    'price_data': {
                        'currency': currency.lower(),
                        'product_data': {'name': product_name, 'description': description},
                        'unit_amount': amount_cents,
                    },
                    'quantity': 1,
                }],
                metadata=metadata,
                payment_intent_data={'metadata': metadata},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed: {e}", exc_info=True)
            raise GatewayError()

    def retrieve_session(self, session_id):
        self._require_key()
        try:
            return stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe session lookup failed for {session_id}: {e}", exc_info=True)
            raise GatewayError()

    def parse_event(self, payload: bytes, signature: str) -> dict:
        """Verify the ``Stripe-Signature`` header and return the event as a plain dict."""
        if not self.webhook_secret:
            raise GatewayNotConfigured(_('Webhook secret is not configured.'))
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected Stripe webhook: {e}")
            raise ValidationFailed(_('Invalid webhook signature.'))
        return json.loads(payload)
