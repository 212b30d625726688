"""
Consent Tests

Tests cover:
1. Requirement resolution per account type
2. Append-only consent rows
3. Signing through the API, including held purchase release
4. Public requirement listing
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import AccountStatus, AccountType
from accounts.services import create_account
from catalogue.models import AccountService, PurchaseStatus, Service
from consents.models import ConsentType, ImmutableConsentError, LegalConsent
from consents.resolver import has_required_consents, missing_consents, required_consents
from consents.services import record_consents
from core.exceptions import ValidationFailed

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


class ResolverTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)

    def test_required_by_account_type(self):
        self.assertEqual(required_consents(AccountType.INDIVIDUAL), ['TAX_AGENT_AUTHORITY'])
        for account_type in (AccountType.COMPANY, AccountType.TRUST, AccountType.PARTNERSHIP):
            self.assertEqual(required_consents(account_type), ['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])

    def test_missing_shrinks_as_consents_are_recorded(self):
        account = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)
        self.assertFalse(has_required_consents(account))

        record_consents(account, self.owner, [ConsentType.TAX_AGENT_AUTHORITY])
        self.assertEqual(missing_consents(account), ['ENGAGEMENT_LETTER'])

        record_consents(account, self.owner, [ConsentType.ENGAGEMENT_LETTER])
        self.assertTrue(has_required_consents(account))

    def test_any_version_counts(self):
        account = create_account(self.owner, 'Jo Citizen', AccountType.INDIVIDUAL)
        record_consents(account, self.owner, [ConsentType.TAX_AGENT_AUTHORITY], document_version='0.1')
        self.assertTrue(has_required_consents(account))


class RecordConsentsTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = create_account(self.owner, 'Jo Citizen', AccountType.INDIVIDUAL)

    def test_duplicate_types_recorded_once(self):
        consents = record_consents(
            self.account, self.owner, ['TAX_AGENT_AUTHORITY', 'TAX_AGENT_AUTHORITY'], document_version='2.0'
        )
        self.assertEqual(len(consents), 1)
        self.assertEqual(consents[0].document_version, '2.0')

    def test_empty_or_unknown_types_rejected(self):
        with self.assertRaises(ValidationFailed):
            record_consents(self.account, self.owner, [])
        with self.assertRaises(ValidationFailed):
            record_consents(self.account, self.owner, ['NOT_A_CONSENT'])
        self.assertFalse(LegalConsent.objects.exists())

    def test_rows_cannot_be_changed_or_deleted(self):
        consent = record_consents(self.account, self.owner, ['TAX_AGENT_AUTHORITY'])[0]
        consent = LegalConsent.objects.get(pk=consent.pk)

        consent.signed_name = 'Someone Else'
        with self.assertRaises(ImmutableConsentError):
            consent.save()
        with self.assertRaises(ImmutableConsentError):
            consent.delete()
        self.assertEqual(LegalConsent.objects.count(), 1)

    def test_resigning_adds_a_row(self):
        record_consents(self.account, self.owner, ['TAX_AGENT_AUTHORITY'], document_version='1.0')
        record_consents(self.account, self.owner, ['TAX_AGENT_AUTHORITY'], document_version='1.1')
        self.assertEqual(LegalConsent.objects.filter(account=self.account).count(), 2)


class ConsentApiTests(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)
        self.client.force_authenticate(user=self.owner)

    def accept(self, consent_types, **extra):
        payload = {'account_id': str(self.account.pk), 'consent_types': consent_types}
        payload.update(extra)
        return self.client.post(
            '/api/v1/consents/accept/', payload, format='json',
            HTTP_USER_AGENT='Mozilla/5.0 (Test)', REMOTE_ADDR='203.0.113.9',
        )

    def test_accept_records_request_metadata(self):
        response = self.accept(
            ['TAX_AGENT_AUTHORITY'], signature_data='Olivia Owner', signature_type='type', signed_name='Olivia Owner'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['missing'], ['ENGAGEMENT_LETTER'])
        consent = LegalConsent.objects.get()
        self.assertEqual(consent.ip_address, '203.0.113.9')
        self.assertEqual(consent.user_agent, 'Mozilla/5.0 (Test)')
        self.assertEqual(consent.user, self.owner)
        self.assertEqual(consent.signature_type, 'type')

    def test_signature_type_required_with_signature(self):
        response = self.accept(['TAX_AGENT_AUTHORITY'], signature_data='Olivia Owner')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('signature_type', response.data['details'])

    def test_unknown_consent_type(self):
        response = self.accept(['MADE_UP'])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_sign_for_another_owners_account(self):
        other = User.objects.create_user(email='other@example.com', password=PASSWORD)
        self.client.force_authenticate(user=other)
        response = self.accept(['TAX_AGENT_AUTHORITY'])
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(LegalConsent.objects.exists())

    def test_check(self):
        response = self.client.get(f'/api/v1/consents/check/{self.account.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['has_all_required'])
        self.assertEqual(response.data['missing'], ['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])

        self.accept(['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])
        response = self.client.get(f'/api/v1/consents/check/{self.account.pk}/')
        self.assertTrue(response.data['has_all_required'])
        self.assertEqual(response.data['missing'], [])

    def test_completing_consents_releases_held_purchases(self):
        self.account.status = AccountStatus.ACTIVE
        self.account.save()
        service = Service.objects.create(
            code='ITR', name='Tax Return', allowed_types=['COMPANY'], pricing={'COMPANY': '450.00'},
        )
        purchase = AccountService.objects.create(
            account=self.account, service=service, price='450.00', financial_year='2024-25',
            status=PurchaseStatus.CONSENT_REQUIRED,
        )

        self.accept(['TAX_AGENT_AUTHORITY'])
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, PurchaseStatus.CONSENT_REQUIRED)

        self.accept(['ENGAGEMENT_LETTER'])
        purchase.refresh_from_db()
        self.assertEqual(purchase.status, PurchaseStatus.PENDING)

    def test_my_consents(self):
        self.accept(['TAX_AGENT_AUTHORITY'])
        response = self.client.get('/api/v1/consents/my/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['account_name'], 'Acme Pty Ltd')

    def test_required_listing_is_public(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/v1/consents/required/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['always_required'], ['TAX_AGENT_AUTHORITY'])
        self.assertEqual(response.data['required_for_non_individual'], ['ENGAGEMENT_LETTER'])
        self.assertEqual(len(response.data['all']), len(ConsentType.choices))

    def test_admin_listing_and_stats(self):
        self.accept(['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])
        response = self.client.get('/api/v1/admin/consents/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin = User.objects.create_superuser(email='admin@example.com', password=PASSWORD)
        self.client.force_authenticate(user=admin)
        response = self.client.get('/api/v1/admin/consents/stats/')
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['accounts_with_consents'], 1)
        self.assertEqual(response.data['by_type']['ENGAGEMENT_LETTER'], 1)
