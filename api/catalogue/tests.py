"""
Service Catalogue Tests

Tests cover:
1. Purchase gate checks and their order
2. Duplicate detection per financial year
3. Initial status from consent state
4. Purchase workflow changes by admins
5. Admin catalogue management
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import AccountStatus, AccountType
from accounts.services import create_account
from catalogue.gate import PurchaseGate, release_consent_held_purchases, set_purchase_status
from catalogue.models import AccountService, PurchaseStatus, Service
from consents.services import record_consents
from core.exceptions import AccessDenied, Conflict, InvalidState, ResourceNotFound, ValidationFailed

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


def make_service(code='ITR', **extra):
    fields = {
        'name': 'Tax Return',
        'allowed_types': ['INDIVIDUAL', 'COMPANY'],
        'pricing': {'INDIVIDUAL': '150.00', 'COMPANY': '450.00'},
    }
    fields.update(extra)
    return Service.objects.create(code=code, **fields)


def make_active_account(owner, name='Acme Pty Ltd', account_type=AccountType.COMPANY):
    account = create_account(owner, name, account_type)
    account.status = AccountStatus.ACTIVE
    account.save()
    return account


class ServiceModelTests(TestCase):

    def test_price_for(self):
        service = Service(pricing={'COMPANY': '450.00', 'TRUST': ''})
        self.assertEqual(service.price_for('COMPANY'), Decimal('450.00'))
        self.assertIsNone(service.price_for('TRUST'))
        self.assertIsNone(service.price_for('INDIVIDUAL'))


class PurchaseGateTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = make_active_account(self.owner)
        self.service = make_service()
        self.gate = PurchaseGate()

    def test_owner_only(self):
        other = User.objects.create_user(email='other@example.com', password=PASSWORD)
        with self.assertRaises(AccessDenied):
            self.gate.quote(other, self.account.pk, self.service.pk)

    def test_account_must_be_active(self):
        draft = create_account(self.owner, 'Draft Co', AccountType.COMPANY)
        with self.assertRaises(InvalidState):
            self.gate.quote(self.owner, draft.pk, self.service.pk)

    def test_account_check_runs_before_service_lookup(self):
        draft = create_account(self.owner, 'Draft Co', AccountType.COMPANY)
        with self.assertRaises(InvalidState):
            self.gate.quote(self.owner, draft.pk, 'not-a-uuid')

    def test_unknown_or_inactive_service(self):
        with self.assertRaises(ResourceNotFound):
            self.gate.quote(self.owner, self.account.pk, 'not-a-uuid')
        self.service.is_active = False
        self.service.save()
        with self.assertRaises(InvalidState):
            self.gate.quote(self.owner, self.account.pk, self.service.pk)

    def test_account_type_not_allowed(self):
        trust = make_active_account(self.owner, 'Smith Trust', AccountType.TRUST)
        with self.assertRaises(ValidationFailed):
            self.gate.quote(self.owner, trust.pk, self.service.pk)

    def test_missing_price(self):
        service = make_service(code='BAS', pricing={'INDIVIDUAL': '99.00'})
        with self.assertRaises(ValidationFailed):
            self.gate.quote(self.owner, self.account.pk, service.pk)

    def test_consent_required_when_consents_missing(self):
        purchase = self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        self.assertEqual(purchase.status, PurchaseStatus.CONSENT_REQUIRED)
        self.assertEqual(purchase.price, Decimal('450.00'))

    def test_pending_when_consents_complete(self):
        record_consents(self.account, self.owner, ['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])
        purchase = self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        self.assertEqual(purchase.status, PurchaseStatus.PENDING)

    def test_services_without_consent_requirement_start_pending(self):
        service = make_service(code='ADV', requires_consent=False)
        purchase = self.gate.purchase(self.owner, self.account.pk, service.pk)
        self.assertEqual(purchase.status, PurchaseStatus.PENDING)

    def test_injected_consent_check(self):
        gate = PurchaseGate(consent_check=lambda account: True)
        self.assertEqual(gate.quote(self.owner, self.account.pk, self.service.pk).initial_status, PurchaseStatus.PENDING)

    def test_duplicate_for_same_year(self):
        self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        with self.assertRaises(Conflict):
            self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2025-26')
        self.assertEqual(AccountService.objects.count(), 2)

    def test_blank_year_matches_any_purchase(self):
        self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        self.assertTrue(PurchaseGate.has_service(self.account, self.service))
        with self.assertRaises(Conflict):
            self.gate.purchase(self.owner, self.account.pk, self.service.pk)

    def test_cancelled_purchase_does_not_block(self):
        purchase = self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        set_purchase_status(purchase, PurchaseStatus.CANCELLED)
        self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')

    def test_release_consent_held_purchases(self):
        purchase = self.gate.purchase(self.owner, self.account.pk, self.service.pk, '2024-25')
        self.assertEqual(release_consent_held_purchases(self.account), 0)

        record_consents(self.account, self.owner, ['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, PurchaseStatus.PENDING)


class PurchaseStatusTests(TestCase):

    def setUp(self):
        owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        account = make_active_account(owner)
        self.purchase = PurchaseGate().purchase(owner, account.pk, make_service().pk, '2024-25')

    def test_activation_timestamps(self):
        set_purchase_status(self.purchase, PurchaseStatus.IN_PROGRESS)
        activated_at = self.purchase.activated_at
        self.assertIsNotNone(activated_at)

        set_purchase_status(self.purchase, PurchaseStatus.COMPLETED)
        self.purchase.refresh_from_db()
        self.assertEqual(self.purchase.activated_at, activated_at)
        self.assertIsNotNone(self.purchase.completed_at)

    def test_unknown_status(self):
        with self.assertRaises(ValidationFailed):
            set_purchase_status(self.purchase, 'SHIPPED')


class ServiceApiTests(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = make_active_account(self.owner)
        self.service = make_service()
        make_service(code='SMSF', allowed_types=['TRUST'], pricing={'TRUST': '900.00'})
        self.client.force_authenticate(user=self.owner)

    def purchase(self, **extra):
        payload = {'account_id': str(self.account.pk), 'service_id': str(self.service.pk), 'financial_year': '2024-25'}
        payload.update(extra)
        return self.client.post('/api/v1/services/purchase/', payload, format='json')

    def test_services_for_account_are_priced_for_its_type(self):
        response = self.client.get(f'/api/v1/services/for-account/{self.account.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['code'] for s in response.data], ['ITR'])
        self.assertEqual(response.data[0]['price'], '450.00')
        self.assertFalse(response.data[0]['already_purchased'])

    def test_purchase(self):
        response = self.purchase(notes='Please start soon')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], PurchaseStatus.CONSENT_REQUIRED)
        self.assertEqual(response.data['service_code'], 'ITR')

        response = self.client.get(f'/api/v1/services/purchased/{self.account.pk}/')
        self.assertEqual(len(response.data), 1)

    def test_duplicate_purchase_is_a_conflict(self):
        self.purchase()
        response = self.purchase()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'conflict')

    def test_bad_financial_year(self):
        response = self.purchase(financial_year='last year')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_categories(self):
        response = self.client.get('/api/v1/services/categories/')
        self.assertIn({'value': 'TAX', 'label': 'Tax Returns'}, response.data)


class AdminServiceApiTests(APITestCase):

    def setUp(self):
        self.admin = User.objects.create_superuser(email='admin@example.com', password=PASSWORD)
        self.client.force_authenticate(user=self.admin)

    def test_create_validates_pricing(self):
        response = self.client.post('/api/v1/admin/services/', {
            'code': 'BK', 'name': 'Bookkeeping', 'category': 'BOOKKEEPING',
            'allowed_types': ['COMPANY'], 'pricing': {'COMPANY': 'free'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/admin/services/', {
            'code': 'BK', 'name': 'Bookkeeping', 'category': 'BOOKKEEPING',
            'allowed_types': ['COMPANY'], 'pricing': {'COMPANY': 120},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['pricing'], {'COMPANY': '120'})

    def test_service_with_purchases_cannot_be_deleted(self):
        owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        service = make_service()
        PurchaseGate().purchase(owner, make_active_account(owner).pk, service.pk)

        response = self.client.delete(f'/api/v1/admin/services/{service.pk}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        response = self.client.post(f'/api/v1/admin/services/{service.pk}/toggle/')
        self.assertFalse(response.data['is_active'])

    def test_unused_service_can_be_deleted(self):
        service = make_service()
        response = self.client.delete(f'/api/v1/admin/services/{service.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_purchase_status_update(self):
        owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        purchase = PurchaseGate().purchase(owner, make_active_account(owner).pk, make_service().pk)

        response = self.client.patch(
            f'/api/v1/admin/services/purchases/{purchase.pk}/status/', {'status': 'REVIEW'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'REVIEW')

    def test_non_admin_is_refused(self):
        user = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.client.force_authenticate(user=user)
        response = self.client.get('/api/v1/admin/services/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SeedServicesCommandTests(TestCase):

    def test_seed_is_repeatable(self):
        from io import StringIO
        from django.core.management import call_command

        call_command('seed_services', stdout=StringIO())
        count = Service.objects.count()
        self.assertGreater(count, 0)

        Service.objects.filter(code='company_tax_return').update(pricing={'COMPANY': '999.00'})
        call_command('seed_services', '--only-missing', stdout=StringIO())
        self.assertEqual(Service.objects.get(code='company_tax_return').price_for('COMPANY'), Decimal('999.00'))

        call_command('seed_services', stdout=StringIO())
        self.assertEqual(Service.objects.count(), count)
        self.assertEqual(Service.objects.get(code='company_tax_return').price_for('COMPANY'), Decimal('800.00'))
