"""
Payment Tests

Tests cover:
1. Tax calculation (inclusive and exclusive)
2. Checkout creation against a mocked Stripe SDK
3. Verification and the idempotent paid transition
4. Webhook signature checks and event handling
"""
import json
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import stripe
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import AccountStatus, AccountType
from accounts.services import create_account
from catalogue.models import AccountService, PaymentStatus, PurchaseStatus, Service
from core.models_notifications import Notification, NotificationType
from payments.services import mark_paid, price_with_tax

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'

STRIPE_TEST_SETTINGS = {
    'STRIPE_SECRET_KEY': 'sk_test_123',
    'STRIPE_WEBHOOK_SECRET': 'whsec_test',
    'PAYMENT_TAX_RATE': '10',
    'PAYMENT_TAX_INCLUSIVE': False,
    'PAYMENT_CURRENCY': 'AUD',
}


class PriceWithTaxTests(TestCase):

    def test_exclusive_adds_tax(self):
        breakdown = price_with_tax(Decimal('450.00'), tax_rate='10', inclusive=False)
        self.assertEqual(breakdown.subtotal, Decimal('450.00'))
        self.assertEqual(breakdown.tax, Decimal('45.00'))
        self.assertEqual(breakdown.total, Decimal('495.00'))
        self.assertEqual(breakdown.total_cents, 49500)

    def test_exclusive_rounds_half_up(self):
        breakdown = price_with_tax(Decimal('19.99'), tax_rate='10', inclusive=False)
        self.assertEqual(breakdown.tax, Decimal('2.00'))
        self.assertEqual(breakdown.total_cents, 2199)

    def test_inclusive_extracts_tax(self):
        breakdown = price_with_tax(Decimal('110.00'), tax_rate='10', inclusive=True)
        self.assertEqual(breakdown.subtotal, Decimal('100.00'))
        self.assertEqual(breakdown.tax, Decimal('10.00'))
        self.assertEqual(breakdown.total, Decimal('110.00'))

    def test_inclusive_total_is_unchanged(self):
        breakdown = price_with_tax(Decimal('99.99'), tax_rate='10', inclusive=True)
        self.assertEqual(breakdown.total, Decimal('99.99'))
        self.assertEqual(breakdown.tax, Decimal('9.09'))


class PaymentTestCase(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)
        self.account.status = AccountStatus.ACTIVE
        self.account.save()
        self.service = Service.objects.create(
            code='ITR', name='Company Tax Return',
            allowed_types=['COMPANY'], pricing={'COMPANY': '450.00'},
        )
        self.client.force_authenticate(user=self.owner)

    def make_purchase(self, **extra):
        fields = {
            'account': self.account,
            'service': self.service,
            'price': Decimal('450.00'),
            'financial_year': '2024-25',
            'status': PurchaseStatus.PENDING,
            'payment_method': 'stripe',
            'payment_amount': Decimal('495.00'),
            'tax_amount': Decimal('45.00'),
            'currency': 'AUD',
            'stripe_session_id': 'cs_test_1',
        }
        fields.update(extra)
        return AccountService.objects.create(**fields)


@override_settings(**STRIPE_TEST_SETTINGS)
class CheckoutTests(PaymentTestCase):

    def create_checkout(self):
        return self.client.post('/api/v1/payments/create-checkout/', {
            'account_id': str(self.account.pk),
            'service_id': str(self.service.pk),
            'financial_year': '2024-25',
        }, format='json')

    @patch('payments.gateway.stripe.checkout.Session.create')
    def test_create_checkout(self, create_session):
        create_session.return_value = SimpleNamespace(id='cs_test_1', url='https://checkout.stripe.com/c/pay/cs_test_1')

        response = self.create_checkout()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['checkout_url'], 'https://checkout.stripe.com/c/pay/cs_test_1')
        self.assertEqual(response.data['subtotal'], '450.00')
        self.assertEqual(response.data['tax_amount'], '45.00')
        self.assertEqual(response.data['total'], '495.00')
        self.assertEqual(response.data['currency'], 'AUD')

        purchase = AccountService.objects.get(pk=response.data['purchase_id'])
        self.assertEqual(purchase.stripe_session_id, 'cs_test_1')
        self.assertEqual(purchase.payment_status, PaymentStatus.PENDING)

        kwargs = create_session.call_args.kwargs
        self.assertEqual(kwargs['api_key'], 'sk_test_123')
        self.assertEqual(kwargs['line_items'][0]['price_data']['unit_amount'], 49500)
        self.assertEqual(kwargs['line_items'][0]['price_data']['currency'], 'aud')
        self.assertEqual(kwargs['metadata']['purchase_id'], str(purchase.pk))
        self.assertEqual(kwargs['payment_intent_data'], {'metadata': kwargs['metadata']})

    @patch('payments.gateway.stripe.checkout.Session.create')
    def test_gateway_failure_removes_the_purchase(self, create_session):
        create_session.side_effect = stripe.APIConnectionError('Stripe is unreachable')

        response = self.create_checkout()

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(AccountService.objects.exists())

    @override_settings(STRIPE_SECRET_KEY='')
    def test_not_configured(self):
        response = self.create_checkout()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(AccountService.objects.exists())

    @patch('payments.gateway.stripe.checkout.Session.create')
    def test_gate_still_applies(self, create_session):
        self.make_purchase()
        response = self.create_checkout()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        create_session.assert_not_called()

    @patch('payments.gateway.stripe.checkout.Session.retrieve')
    def test_verify_paid_session(self, retrieve_session):
        retrieve_session.return_value = SimpleNamespace(payment_status='paid', payment_intent='pi_1')
        purchase = self.make_purchase(status=PurchaseStatus.CONSENT_REQUIRED)

        response = self.client.post('/api/v1/payments/verify/', {
            'purchase_id': str(purchase.pk), 'session_id': 'cs_test_1',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['purchase']['payment_status'], PaymentStatus.PAID)
        self.assertEqual(response.data['purchase']['status'], PurchaseStatus.IN_PROGRESS)
        self.assertEqual(response.data['purchase']['transaction_id'], 'pi_1')
        self.assertIsNotNone(response.data['purchase']['activated_at'])
        self.assertTrue(
            Notification.objects.filter(user=self.owner, notification_type=NotificationType.PAYMENT).exists()
        )

    @patch('payments.gateway.stripe.checkout.Session.retrieve')
    def test_verify_unpaid_session(self, retrieve_session):
        retrieve_session.return_value = SimpleNamespace(payment_status='unpaid', payment_intent=None)
        purchase = self.make_purchase()

        response = self.client.post('/api/v1/payments/verify/', {
            'purchase_id': str(purchase.pk), 'session_id': 'cs_test_1',
        }, format='json')

        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['status'], 'unpaid')
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.PENDING)

    def test_verify_rejects_other_session(self):
        purchase = self.make_purchase()
        response = self.client.post('/api/v1/payments/verify/', {
            'purchase_id': str(purchase.pk), 'session_id': 'cs_someone_else',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel(self):
        purchase = self.make_purchase()
        response = self.client.delete(f'/api/v1/payments/cancel/{purchase.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(AccountService.objects.exists())

    def test_paid_purchase_cannot_be_cancelled(self):
        purchase = self.make_purchase(payment_status=PaymentStatus.PAID)
        response = self.client.delete(f'/api/v1/payments/cancel/{purchase.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_state')

    def test_status_of_another_owners_purchase(self):
        purchase = self.make_purchase()
        other = User.objects.create_user(email='other@example.com', password=PASSWORD)
        self.client.force_authenticate(user=other)
        response = self.client.get(f'/api/v1/payments/status/{purchase.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_settings_are_public(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/v1/payments/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['enabled'])
        self.assertEqual(response.data['tax_rate'], '10')
        self.assertNotIn('secret_key', response.data)


class MarkPaidTests(PaymentTestCase):

    def test_second_call_changes_nothing(self):
        purchase = self.make_purchase()

        purchase, changed = mark_paid(purchase.pk, 'pi_1')
        self.assertTrue(changed)
        paid_at = purchase.paid_at

        purchase, changed = mark_paid(purchase.pk, 'pi_2')
        self.assertFalse(changed)
        purchase.refresh_from_db()
        self.assertEqual(purchase.transaction_id, 'pi_1')
        self.assertEqual(purchase.paid_at, paid_at)

    def test_unknown_purchase(self):
        self.assertEqual(mark_paid('not-a-uuid'), (None, False))

    def test_later_workflow_status_is_kept(self):
        purchase = self.make_purchase(status=PurchaseStatus.REVIEW)
        purchase, _changed = mark_paid(purchase.pk, 'pi_1')
        self.assertEqual(purchase.status, PurchaseStatus.REVIEW)


@override_settings(**STRIPE_TEST_SETTINGS)
class StripeWebhookTests(PaymentTestCase):

    def send(self, event_type, obj):
        event = {'id': 'evt_1', 'type': event_type, 'data': {'object': obj}}
        self.client.force_authenticate(user=None)
        return self.client.post(
            '/api/v1/webhooks/stripe/', json.dumps(event),
            content_type='application/json', HTTP_STRIPE_SIGNATURE='t=1,v1=signature',
        )

    def setUp(self):
        super().setUp()
        patcher = patch('payments.gateway.stripe.Webhook.construct_event')
        self.construct_event = patcher.start()
        self.addCleanup(patcher.stop)

    def test_invalid_signature(self):
        self.construct_event.side_effect = stripe.SignatureVerificationError('No signatures found', 'bad')
        purchase = self.make_purchase()

        response = self.send('checkout.session.completed', {
            'payment_status': 'paid', 'payment_intent': 'pi_1', 'metadata': {'purchase_id': str(purchase.pk)},
        })

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.PENDING)

    @override_settings(STRIPE_WEBHOOK_SECRET='')
    def test_missing_webhook_secret(self):
        response = self.send('checkout.session.completed', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'payment_not_configured')

    def test_checkout_completed(self):
        purchase = self.make_purchase()
        obj = {'payment_status': 'paid', 'payment_intent': 'pi_1', 'metadata': {'purchase_id': str(purchase.pk)}}

        response = self.send('checkout.session.completed', obj)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'received': True})
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.PAID)
        self.assertEqual(purchase.status, PurchaseStatus.IN_PROGRESS)
        paid_at = purchase.paid_at

        response = self.send('checkout.session.completed', obj)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        purchase.refresh_from_db()
        self.assertEqual(purchase.paid_at, paid_at)

    def test_unpaid_completion_is_ignored(self):
        purchase = self.make_purchase()
        self.send('checkout.session.completed', {
            'payment_status': 'unpaid', 'metadata': {'purchase_id': str(purchase.pk)},
        })
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.PENDING)

    def test_expired_deletes_unpaid_purchase(self):
        purchase = self.make_purchase()
        self.send('checkout.session.expired', {'metadata': {'purchase_id': str(purchase.pk)}})
        self.assertFalse(AccountService.objects.filter(pk=purchase.pk).exists())

    def test_expired_after_payment_keeps_purchase(self):
        purchase = self.make_purchase()
        mark_paid(purchase.pk, 'pi_1')
        self.send('checkout.session.expired', {'metadata': {'purchase_id': str(purchase.pk)}})
        self.assertTrue(AccountService.objects.filter(pk=purchase.pk).exists())

    def test_payment_failed(self):
        purchase = self.make_purchase()
        self.send('payment_intent.payment_failed', {'id': 'pi_1', 'metadata': {'purchase_id': str(purchase.pk)}})
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.FAILED)

    def test_refunds(self):
        purchase = self.make_purchase()
        mark_paid(purchase.pk, 'pi_1')

        self.send('charge.refunded', {'payment_intent': 'pi_1', 'amount': 49500, 'amount_refunded': 10000})
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.PARTIAL_REFUND)

        self.send('charge.refunded', {'payment_intent': 'pi_1', 'amount': 49500, 'amount_refunded': 49500})
        purchase.refresh_from_db()
        self.assertEqual(purchase.payment_status, PaymentStatus.REFUNDED)

    def test_unknown_event_type_is_acknowledged(self):
        response = self.send('customer.created', {'id': 'cus_1'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AdminPaymentStatsTests(PaymentTestCase):

    def test_stats(self):
        paid = self.make_purchase()
        mark_paid(paid.pk, 'pi_1')
        self.make_purchase(financial_year='2025-26', stripe_session_id='cs_test_2')

        admin = User.objects.create_superuser(email='admin@example.com', password=PASSWORD)
        self.client.force_authenticate(user=admin)
        response = self.client.get('/api/v1/admin/payments/stats/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_purchases'], 2)
        self.assertEqual(response.data['paid'], 1)
        self.assertEqual(response.data['pending'], 1)
        self.assertEqual(Decimal(response.data['revenue']), Decimal('495'))
        self.assertEqual(len(response.data['recent']), 1)
