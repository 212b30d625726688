"""
Account Tests

Tests cover:
1. Creation with a type-specific profile and the default flag
2. Lifecycle transitions (submit, close, reopen, delete)
3. Ownership checks
4. Admin status changes
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Account, AccountStatus, AccountType, CompanyProfile
from accounts.services import create_account, set_default_account

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


class AccountServiceTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)

    def test_first_account_becomes_default(self):
        first = create_account(self.owner, 'Me', AccountType.INDIVIDUAL)
        second = create_account(self.owner, 'Acme', AccountType.COMPANY, {'company_name': 'Acme Pty Ltd'})

        self.assertTrue(first.is_default)
        self.assertFalse(second.is_default)
        self.assertEqual(second.status, AccountStatus.DRAFT)
        self.assertIsInstance(second.profile, CompanyProfile)
        self.assertEqual(second.profile.company_name, 'Acme Pty Ltd')

    def test_set_default_moves_the_flag(self):
        first = create_account(self.owner, 'Me', AccountType.INDIVIDUAL)
        second = create_account(self.owner, 'Acme', AccountType.COMPANY)

        set_default_account(second)

        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(Account.objects.get(pk=second.pk).is_default)


class AccountApiTests(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.stranger = User.objects.create_user(email='stranger@example.com', password=PASSWORD)
        self.client.force_authenticate(user=self.owner)

    def create(self, **data):
        payload = {'name': 'Smith Family Trust', 'account_type': 'TRUST', 'profile': {'trust_name': 'Smith Family Trust'}}
        payload.update(data)
        return self.client.post('/api/v1/accounts/', payload, format='json')

    def test_create_returns_profile_and_missing_consents(self):
        response = self.create()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['profile']['trust_name'], 'Smith Family Trust')
        self.assertEqual(response.data['missing_consents'], ['TAX_AGENT_AUTHORITY', 'ENGAGEMENT_LETTER'])

    def test_identifiers_are_masked(self):
        response = self.create(profile={'trust_name': 'T', 'tfn': '123456789'})
        self.assertEqual(response.data['profile']['tfn'], '*******89')

    def test_list_only_shows_own_accounts(self):
        create_account(self.stranger, 'Not mine', AccountType.INDIVIDUAL)
        self.create()

        response = self.client.get('/api/v1/accounts/')

        self.assertEqual(response.data['count'], 1)

    def test_other_owners_account_is_forbidden(self):
        account = create_account(self.stranger, 'Not mine', AccountType.INDIVIDUAL)
        response = self.client.get(f'/api/v1/accounts/{account.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'access_denied')

    def test_submit_close_reopen(self):
        account_id = self.create().data['id']

        response = self.client.post(f'/api/v1/accounts/{account_id}/submit/')
        self.assertEqual(response.data['status'], AccountStatus.PENDING)

        response = self.client.post(f'/api/v1/accounts/{account_id}/submit/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_state')

        response = self.client.post(f'/api/v1/accounts/{account_id}/close/')
        self.assertEqual(response.data['status'], AccountStatus.CLOSED)
        self.assertIsNotNone(response.data['closed_at'])

        response = self.client.post(f'/api/v1/accounts/{account_id}/reopen/')
        self.assertEqual(response.data['status'], AccountStatus.DRAFT)
        self.assertIsNone(response.data['closed_at'])

    def test_update_profile(self):
        account_id = self.create().data['id']
        response = self.client.patch(
            f'/api/v1/accounts/{account_id}/profile/', {'trust_type': 'UNIT'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['profile']['trust_type'], 'UNIT')

    def test_delete_is_permanent(self):
        account_id = self.create().data['id']
        response = self.client.delete(f'/api/v1/accounts/{account_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Account.objects.filter(pk=account_id).exists())

    def test_default_account(self):
        self.create()
        response = self.client.get('/api/v1/accounts/default/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_default'])


class AdminAccountApiTests(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.admin = User.objects.create_superuser(email='admin@example.com', password=PASSWORD)
        self.account = create_account(self.owner, 'Acme', AccountType.COMPANY)

    def test_admin_activates_account(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            f'/api/v1/admin/accounts/{self.account.pk}/status/', {'status': 'ACTIVE'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.account.refresh_from_db()
        self.assertEqual(self.account.status, AccountStatus.ACTIVE)

    def test_non_admin_is_refused(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get('/api/v1/admin/accounts/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get('/api/v1/admin/accounts/stats/')
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['by_type'], {'COMPANY': 1})
