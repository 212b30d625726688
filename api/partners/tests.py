"""
Partner Invitation Tests

Tests cover:
1. Registry validation (owner e-mail, duplicates, account type)
2. Invitation dispatch to existing and unknown users
3. Approval state machine guards
4. Token acceptance after registration
5. Delivery failures never fail partner creation
"""
from datetime import timedelta
from unittest.mock import patch

from django.apps import apps
from django.contrib.auth import get_user_model
from django.core import mail
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import AccountType
from accounts.services import create_account
from core.models_notifications import Notification, NotificationType
from partners.models import (
    CompanyPartner, PartnerInvitation, PartnerStatus, PartnershipPartner, TrustPartner,
)
from partners.registry import check_email, pending_for_user
from partners.state_machine import ApprovalStateMachine

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


class PartnerModelTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.account = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)

    def test_email_is_lower_cased(self):
        partner = CompanyPartner.objects.create(account=self.account, email='Jane@X.com')
        self.assertEqual(partner.email, 'jane@x.com')

    def test_display_role(self):
        partner = CompanyPartner(is_director=True, is_shareholder=True)
        self.assertEqual(partner.display_role, 'Director & Shareholder')
        partner.is_shareholder = False
        self.assertEqual(partner.display_role, 'Director')
        partner.is_director, partner.role = False, 'Secretary'
        self.assertEqual(partner.display_role, 'Secretary')

    def test_active_email_is_unique_per_account(self):
        CompanyPartner.objects.create(account=self.account, email='jane@x.com')
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                CompanyPartner.objects.create(account=self.account, email='jane@x.com')

    def test_removed_record_frees_the_email(self):
        CompanyPartner.objects.create(account=self.account, email='jane@x.com', status=PartnerStatus.REMOVED)
        CompanyPartner.objects.create(account=self.account, email='jane@x.com')
        self.assertEqual(CompanyPartner.objects.filter(email='jane@x.com').count(), 2)

    def test_invitation_token_is_hashed(self):
        invitation, raw_token = PartnerInvitation.issue('company', self.account, 'Jane@X.com')
        self.assertNotEqual(invitation.token_hash, raw_token)
        self.assertEqual(PartnerInvitation.find_valid('jane@x.com', raw_token), invitation)
        self.assertIsNone(PartnerInvitation.find_valid('jane@x.com', 'wrong'))

    def test_expired_invitation_is_invalid(self):
        invitation, raw_token = PartnerInvitation.issue('company', self.account, 'jane@x.com')
        invitation.expires_at = timezone.now() - timedelta(minutes=1)
        invitation.save()
        self.assertIsNone(PartnerInvitation.find_valid('jane@x.com', raw_token))


class PartnerApiTestCase(APITestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD, full_name='Olivia Owner')
        self.company = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)
        self.client.force_authenticate(user=self.owner)

    def add_partner(self, email='jane@x.com', account=None, url='/api/v1/partners/', **extra):
        payload = {'account_id': str((account or self.company).pk), 'email': email, 'is_director': True}
        payload.update(extra)
        return self.client.post(url, payload, format='json')


class AddPartnerTests(PartnerApiTestCase):

    def test_unknown_invitee_gets_registration_email(self):
        response = self.add_partner()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['partner']['status'], PartnerStatus.PENDING)
        self.assertEqual(response.data['partner']['display_role'], 'Director')
        self.assertFalse(response.data['is_existing_user'])
        self.assertNotIn('debug_token', response.data)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['jane@x.com'])
        self.assertIn('/register?invite=', mail.outbox[0].body)
        self.assertEqual(PartnerInvitation.objects.filter(email='jane@x.com').count(), 1)

    def test_existing_user_gets_approval_notification(self):
        jane = User.objects.create_user(email='jane@x.com', password=PASSWORD, full_name='Jane Director')

        response = self.add_partner(email='JANE@X.COM')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_existing_user'])
        self.assertEqual(response.data['name'], 'Jane Director')
        self.assertEqual(response.data['partner']['status'], PartnerStatus.PENDING)
        self.assertIsNone(response.data['partner']['user'])
        notification = Notification.objects.get(user=jane)
        self.assertEqual(notification.notification_type, NotificationType.APPROVAL)
        self.assertEqual(len(mail.outbox), 1)

    @override_settings(DEBUG=True)
    def test_debug_token_in_debug_mode(self):
        response = self.add_partner()
        self.assertIn('debug_token', response.data)

    def test_owner_cannot_invite_themselves(self):
        response = self.add_partner(email='OWNER@example.com')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(CompanyPartner.objects.exists())

    def test_duplicate_email_is_a_conflict(self):
        self.add_partner(email='jane@x.com')
        response = self.add_partner(email='Jane@X.com')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'conflict')

    def test_wrong_account_type(self):
        trust = create_account(self.owner, 'Smith Trust', AccountType.TRUST)
        response = self.add_partner(account=trust)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_role_selection_is_required(self):
        response = self.add_partner(is_director=False)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data['details'])

    def test_account_of_another_owner(self):
        other = User.objects.create_user(email='other@example.com', password=PASSWORD)
        foreign = create_account(other, 'Foreign Co', AccountType.COMPANY)
        response = self.add_partner(account=foreign)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_broker_outage_does_not_fail_creation(self):
        from core.tasks import deliver_email

        with patch.object(deliver_email, 'delay', side_effect=ConnectionError('broker down')):
            response = self.add_partner()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['invitation_sent'])
        self.assertTrue(CompanyPartner.objects.filter(email='jane@x.com', status=PartnerStatus.PENDING).exists())

    def test_broker_outage_for_existing_user_is_reported(self):
        from core.tasks import deliver_email

        jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        with patch.object(deliver_email, 'delay', side_effect=ConnectionError('broker down')):
            response = self.add_partner()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_existing_user'])
        self.assertFalse(response.data['invitation_sent'])
        self.assertTrue(Notification.objects.filter(user=jane, notification_type=NotificationType.APPROVAL).exists())

    def test_trust_and_partnership_variants(self):
        trust = create_account(self.owner, 'Smith Trust', AccountType.TRUST)
        partnership = create_account(self.owner, 'Smith & Co', AccountType.PARTNERSHIP)

        response = self.client.post('/api/v1/trust-partners/', {
            'account_id': str(trust.pk), 'email': 'ben@x.com', 'role': 'BENEFICIARY', 'beneficiary_percent': '50.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['partner']['display_role'], 'Beneficiary')

        response = self.client.post('/api/v1/partnership-partners/', {
            'account_id': str(partnership.pk), 'email': 'pat@x.com', 'ownership_percent': '150',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.assertTrue(TrustPartner.objects.filter(account=trust).exists())
        self.assertFalse(PartnershipPartner.objects.exists())

    def test_list_by_account(self):
        self.add_partner(email='a@x.com')
        self.add_partner(email='b@x.com')
        response = self.client.get(f'/api/v1/partners/account/{self.company.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)


class UpdateAndDeleteTests(PartnerApiTestCase):

    def setUp(self):
        super().setUp()
        self.jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        self.partner_id = self.add_partner().data['partner']['id']
        partner = CompanyPartner.objects.get(pk=self.partner_id)
        apps.get_app_config('partners').state_machine.respond(partner, self.jane, 'approve')

    def test_email_change_resets_to_pending_and_reinvites(self):
        mail.outbox.clear()
        response = self.client.patch(
            f'/api/v1/partners/{self.partner_id}/', {'email': 'new@x.com'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['re_invited'])
        partner = CompanyPartner.objects.get(pk=self.partner_id)
        self.assertEqual(partner.status, PartnerStatus.PENDING)
        self.assertIsNone(partner.user)
        self.assertIsNone(partner.responded_at)
        self.assertEqual(mail.outbox[0].to, ['new@x.com'])

    def test_email_change_on_rejected_partner_reinvites(self):
        rex = User.objects.create_user(email='rex@x.com', password=PASSWORD)
        partner_id = self.add_partner(email='rex@x.com').data['partner']['id']
        partner = CompanyPartner.objects.get(pk=partner_id)
        apps.get_app_config('partners').state_machine.respond(partner, rex, 'reject')

        response = self.client.patch(f'/api/v1/partners/{partner_id}/', {'email': 'rex@y.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        partner.refresh_from_db()
        self.assertEqual(partner.status, PartnerStatus.PENDING)
        self.assertEqual(partner.email, 'rex@y.com')
        self.assertIsNone(partner.user)

    def test_removed_partner_cannot_be_edited(self):
        response = self.client.post(f'/api/v1/partners/{self.partner_id}/remove/')
        self.assertEqual(response.data['status'], PartnerStatus.REMOVED)
        mail.outbox.clear()
        invitations = PartnerInvitation.objects.count()

        response = self.client.patch(
            f'/api/v1/partners/{self.partner_id}/', {'email': 'new@x.com'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'invalid_state')

        response = self.client.patch(f'/api/v1/partners/{self.partner_id}/', {'name': 'Jane D'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        partner = CompanyPartner.objects.get(pk=self.partner_id)
        self.assertEqual(partner.status, PartnerStatus.REMOVED)
        self.assertEqual(partner.email, 'jane@x.com')
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(PartnerInvitation.objects.count(), invitations)

    def test_plain_edit_keeps_status(self):
        response = self.client.patch(
            f'/api/v1/partners/{self.partner_id}/', {'name': 'Jane D', 'share_count': 100}, format='json'
        )
        self.assertFalse(response.data['re_invited'])
        self.assertEqual(response.data['partner']['status'], PartnerStatus.APPROVED)
        self.assertEqual(response.data['partner']['share_count'], 100)

    def test_delete_requires_confirmation(self):
        response = self.client.delete(f'/api/v1/partners/{self.partner_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/partners/{self.partner_id}/?confirm=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CompanyPartner.objects.filter(pk=self.partner_id).exists())

    def test_resend_only_while_pending(self):
        response = self.client.post(f'/api/v1/partners/{self.partner_id}/resend/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invitee_may_withdraw_once_approved(self):
        self.client.force_authenticate(user=self.jane)
        response = self.client.post(f'/api/v1/partners/{self.partner_id}/remove/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], PartnerStatus.REMOVED)

        response = self.client.post(f'/api/v1/partners/{self.partner_id}/remove/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StateMachineTests(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', password=PASSWORD)
        self.jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        self.mallory = User.objects.create_user(email='mallory@x.com', password=PASSWORD)
        account = create_account(self.owner, 'Acme Pty Ltd', AccountType.COMPANY)
        self.partner = CompanyPartner.objects.create(account=account, email='JANE@x.com', is_director=True)
        self.machine = ApprovalStateMachine()

    def test_transition_table(self):
        self.assertTrue(self.machine.can_transition(PartnerStatus.PENDING, PartnerStatus.APPROVED))
        self.assertTrue(self.machine.can_transition(PartnerStatus.REJECTED, PartnerStatus.REMOVED))
        self.assertFalse(self.machine.can_transition(PartnerStatus.APPROVED, PartnerStatus.REJECTED))
        self.assertFalse(self.machine.can_transition(PartnerStatus.REMOVED, PartnerStatus.PENDING))
        self.assertTrue(self.machine.can_transition(PartnerStatus.APPROVED, PartnerStatus.PENDING))

    def test_removed_record_is_terminal(self):
        from core.exceptions import InvalidState

        self.machine.remove(self.partner, self.owner)
        with self.assertRaises(InvalidState):
            self.machine.assert_editable(self.partner)
        with self.assertRaises(InvalidState):
            self.machine.reinvite(self.partner, 'new@x.com')
        with self.assertRaises(InvalidState):
            self.machine.respond(self.partner, self.jane, 'approve')
        self.assertEqual(self.partner.status, PartnerStatus.REMOVED)
        self.assertEqual(self.partner.email, 'jane@x.com')

    def test_invitee_approves(self):
        self.machine.respond(self.partner, self.jane, 'approve')

        self.partner.refresh_from_db()
        self.assertEqual(self.partner.status, PartnerStatus.APPROVED)
        self.assertEqual(self.partner.user, self.jane)
        self.assertIsNotNone(self.partner.responded_at)
        self.assertTrue(Notification.objects.filter(user=self.owner).exists())

    def test_only_the_invitee_may_respond(self):
        from core.exceptions import AccessDenied

        with self.assertRaises(AccessDenied):
            self.machine.respond(self.partner, self.mallory, 'approve')
        with self.assertRaises(AccessDenied):
            self.machine.respond(self.partner, self.owner, 'approve')

    def test_cannot_respond_twice(self):
        from core.exceptions import InvalidState

        self.machine.respond(self.partner, self.jane, 'reject')
        with self.assertRaises(InvalidState):
            self.machine.respond(self.partner, self.jane, 'approve')

    def test_owner_removes_from_any_state(self):
        self.machine.remove(self.partner, self.owner)
        self.assertEqual(self.partner.status, PartnerStatus.REMOVED)

    def test_invitee_cannot_withdraw_pending(self):
        from core.exceptions import InvalidState

        with self.assertRaises(InvalidState):
            self.machine.remove(self.partner, self.jane)


class InvitationFlowTests(PartnerApiTestCase):

    def test_respond_endpoint(self):
        jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        partner_id = self.add_partner().data['partner']['id']

        self.client.force_authenticate(user=jane)
        response = self.client.get('/api/v1/partners/invitations/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['kind'], 'company')
        self.assertEqual(response.data[0]['inviter_name'], 'Olivia Owner')

        url = f'/api/v1/partners/invitations/company/{partner_id}/respond/'
        response = self.client.post(url, {'action': 'approve'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], PartnerStatus.APPROVED)

        response = self.client.post(url, {'action': 'reject'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invitation already responded')

    def test_respond_not_for_you(self):
        partner_id = self.add_partner().data['partner']['id']
        response = self.client.post(
            f'/api/v1/partners/invitations/company/{partner_id}/respond/', {'action': 'approve'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'This invitation is not for you')

    @override_settings(DEBUG=True)
    def test_register_then_accept_with_token(self):
        token = self.add_partner().data['debug_token']
        self.client.force_authenticate(user=None)

        response = self.client.post(
            '/api/v1/partners/verify-token/', {'email': 'jane@x.com', 'token': token}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['account_name'], 'Acme Pty Ltd')
        self.assertEqual(response.data['inviter_name'], 'Olivia Owner')

        jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        self.assertEqual(len(pending_for_user(jane)), 1)
        self.client.force_authenticate(user=jane)
        response = self.client.post(
            '/api/v1/partners/accept-invitation/', {'email': 'Jane@x.com', 'token': token}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        partner = CompanyPartner.objects.get(email='jane@x.com')
        self.assertEqual(partner.status, PartnerStatus.APPROVED)
        self.assertEqual(partner.user, jane)
        self.assertIsNotNone(partner.responded_at)

        response = self.client.post(
            '/api/v1/partners/accept-invitation/', {'email': 'jane@x.com', 'token': token}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(DEBUG=True)
    def test_accept_with_someone_elses_email(self):
        token = self.add_partner().data['debug_token']
        mallory = User.objects.create_user(email='mallory@x.com', password=PASSWORD)
        self.client.force_authenticate(user=mallory)
        response = self.client.post(
            '/api/v1/partners/accept-invitation/', {'email': 'jane@x.com', 'token': token}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @override_settings(DEBUG=True)
    def test_token_is_kept_when_record_was_deleted(self):
        response = self.add_partner()
        token, partner_id = response.data['debug_token'], response.data['partner']['id']
        self.client.delete(f'/api/v1/partners/{partner_id}/?confirm=true')

        jane = User.objects.create_user(email='jane@x.com', password=PASSWORD)
        self.client.force_authenticate(user=jane)
        response = self.client.post(
            '/api/v1/partners/accept-invitation/', {'email': 'jane@x.com', 'token': token}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIsNone(PartnerInvitation.objects.get(email='jane@x.com').accepted_at)

    def test_verify_bad_token(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(
            '/api/v1/partners/verify-token/', {'email': 'jane@x.com', 'token': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_check_email(self):
        User.objects.create_user(email='jane@x.com', password=PASSWORD, full_name='Jane')
        response = self.client.get('/api/v1/partners/check-email/', {'email': 'JANE@x.com'})
        self.assertEqual(response.data, {'exists': True, 'name': 'Jane'})
        self.assertEqual(check_email('nobody@x.com'), {'exists': False, 'name': None})
