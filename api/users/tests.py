"""
User Tests

Tests cover:
1. Case-insensitive e-mail handling
2. Sign-up, including pending partner invitations
3. Profile read and update
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import AccountType
from accounts.services import create_account
from partners.models import CompanyPartner, PartnerInvitation, PartnerStatus
from users.services import find_user_by_email

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


class UserDirectoryTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='Jane.Doe@Example.com', password=PASSWORD)

    def test_email_is_stored_lower_case(self):
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'jane.doe@example.com')

    def test_lookup_ignores_case_and_whitespace(self):
        self.assertEqual(find_user_by_email('  JANE.DOE@example.COM '), self.user)

    def test_inactive_users_are_not_found(self):
        self.user.is_active = False
        self.user.save()
        self.assertIsNone(find_user_by_email('jane.doe@example.com'))

    def test_unknown_email(self):
        self.assertIsNone(find_user_by_email('nobody@example.com'))
        self.assertIsNone(find_user_by_email(''))


class SignUpTests(APITestCase):

    def payload(self, **overrides):
        data = {
            'email': 'New.User@Example.com',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
            'full_name': 'New User',
        }
        data.update(overrides)
        return data

    def test_signup_returns_tokens(self):
        response = self.client.post('/api/v1/auth/signup/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'new.user@example.com')
        self.assertEqual(response.data['pending_invitations'], 0)

    def test_duplicate_email_any_case_is_rejected(self):
        User.objects.create_user(email='new.user@example.com', password=PASSWORD)
        response = self.client.post('/api/v1/auth/signup/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['details'])

    def test_password_mismatch(self):
        response = self.client.post(
            '/api/v1/auth/signup/', self.payload(password_confirm='Different-Passw0rd!'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_invitations_are_counted(self):
        owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        account = create_account(owner, 'Acme Pty Ltd', AccountType.COMPANY)
        CompanyPartner.objects.create(account=account, email='new.user@example.com', is_director=True)

        response = self.client.post('/api/v1/auth/signup/', self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['pending_invitations'], 1)

    def test_invite_token_accepts_on_signup(self):
        owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        account = create_account(owner, 'Acme Pty Ltd', AccountType.COMPANY)
        partner = CompanyPartner.objects.create(account=account, email='new.user@example.com', is_director=True)
        _invitation, token = PartnerInvitation.issue('company', account, 'new.user@example.com')

        response = self.client.post('/api/v1/auth/signup/', self.payload(invite_token=token), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['accepted_invitations'], 1)
        self.assertEqual(response.data['pending_invitations'], 0)
        partner.refresh_from_db()
        self.assertEqual(partner.status, PartnerStatus.APPROVED)
        self.assertEqual(partner.user.email, 'new.user@example.com')

    def test_stale_invite_token_does_not_block_signup(self):
        response = self.client.post('/api/v1/auth/signup/', self.payload(invite_token='expired'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['accepted_invitations'], 0)
        self.assertIn('invitation_error', response.data)
        self.assertTrue(User.objects.filter(email='new.user@example.com').exists())


class MeTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='me@example.com', password=PASSWORD, full_name='Me')
        self.client.force_authenticate(user=self.user)

    def test_get_profile(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'me@example.com')

    def test_update_profile(self):
        response = self.client.patch('/api/v1/auth/me/', {'full_name': 'Updated'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.full_name, 'Updated')

    def test_token_login_is_case_insensitive(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(
            '/api/v1/auth/token/', {'email': 'ME@example.com', 'password': PASSWORD}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
