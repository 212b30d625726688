"""
Core Tests

Tests cover:
1. PII masking of audit details
2. Error response shape from the API exception handler
3. Background e-mail delivery and delivery logs
4. Notification endpoints
"""
import json
import smtplib
from unittest.mock import patch

from django.core import mail
from django.contrib.auth import get_user_model
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework.test import APITestCase

from core.audit import AuditAction, mask_pii, write_audit_log
from core.libs.email import EmailResult
from core.models_notifications import DeliveryChannel, DeliveryStatus, NotificationLog
from core.services.notification_service import NotificationService

User = get_user_model()


class MaskPiiTests(TestCase):
    """Audit detail masking"""

    def test_email_keeps_first_two_characters_and_domain(self):
        self.assertEqual(mask_pii({'email': 'jane@example.com'})['email'], 'ja***@example.com')

    def test_keys_are_matched_by_substring(self):
        masked = mask_pii({'ownerEmail': 'owner@example.com', 'mobile_phone': '0412345678'})
        self.assertEqual(masked['ownerEmail'], 'ow***@example.com')
        self.assertEqual(masked['mobile_phone'], '******5678')

    def test_tax_identifiers(self):
        masked = mask_pii({'tfn': '123456789', 'abn': '51824753556'})
        self.assertEqual(masked['tfn'], '***-***-***')
        self.assertEqual(masked['abn'], '********556')

    def test_credentials_are_redacted(self):
        masked = mask_pii({'password': 'hunter22', 'access_token': 'abc', 'api_key': 'k'})
        self.assertEqual(set(masked.values()), {'[REDACTED]'})

    def test_nested_structures(self):
        masked = mask_pii({'partners': [{'email': 'bob@example.com'}], 'count': 2})
        self.assertEqual(masked['partners'][0]['email'], 'bo***@example.com')
        self.assertEqual(masked['count'], 2)


class AuditLogTests(TestCase):

    def test_entry_is_json_with_request_metadata(self):
        request = RequestFactory().get(
            '/', HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1', HTTP_USER_AGENT='x' * 300
        )
        with self.assertLogs('audit', level='INFO') as captured:
            entry = write_audit_log(
                AuditAction.PARTNER_INVITED,
                user_id='u1',
                target_id='p1',
                target_type='CompanyPartner',
                request=request,
                details={'email': 'jane@example.com'},
            )

        logged = json.loads(captured.records[0].getMessage())
        self.assertEqual(logged['action'], 'PARTNER_INVITED')
        self.assertEqual(logged['ipAddress'], '203.0.113.7')
        self.assertEqual(len(logged['userAgent']), 200)
        self.assertEqual(logged['details']['email'], 'ja***@example.com')
        self.assertEqual(entry['targetType'], 'CompanyPartner')


class ExceptionHandlerTests(APITestCase):
    """Every error carries an ``error`` code and a ``message``"""

    def setUp(self):
        self.user = User.objects.create_user(email='owner@example.com', password='Str0ng-Passw0rd!')
        self.client.force_authenticate(user=self.user)

    def test_not_found(self):
        response = self.client.get('/api/v1/accounts/00000000-0000-0000-0000-000000000000/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')
        self.assertIn('message', response.data)

    def test_validation_error_has_details(self):
        response = self.client.post('/api/v1/accounts/', {'name': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_failed')
        self.assertIn('name', response.data['details'])

    def test_unauthenticated(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/v1/accounts/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'not_authenticated')


class EmailDeliveryTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='reader@example.com', password='Str0ng-Passw0rd!')

    def test_queued_email_is_sent_and_logged(self):
        ok = NotificationService.queue_email(
            to='someone@example.com', subject='Hello', text='Body', html='<p>Body</p>'
        )

        self.assertTrue(ok)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['someone@example.com'])
        log = NotificationLog.objects.get(channel=DeliveryChannel.EMAIL)
        self.assertEqual(log.status, DeliveryStatus.SENT)
        self.assertEqual(log.attempts, 1)
        self.assertIsNotNone(log.sent_at)

    def test_broker_failure_is_logged_not_raised(self):
        from core.tasks import deliver_email

        with patch.object(deliver_email, 'delay', side_effect=ConnectionError('broker down')):
            ok = NotificationService.queue_email(to='someone@example.com', subject='Hello', text='Body')

        self.assertFalse(ok)
        log = NotificationLog.objects.get(channel=DeliveryChannel.EMAIL)
        self.assertEqual(log.status, DeliveryStatus.FAILED)
        self.assertIn('broker down', log.error_message)

    def test_permanent_send_failure_marks_log_failed(self):
        failure = EmailResult(success=False, error='auth rejected')
        with patch('core.tasks.send_email', return_value=failure):
            NotificationService.queue_email(to='someone@example.com', subject='Hello', text='Body')

        log = NotificationLog.objects.get(channel=DeliveryChannel.EMAIL)
        self.assertEqual(log.status, DeliveryStatus.FAILED)
        self.assertEqual(log.error_message, 'auth rejected')

    def test_smtp_errors_are_transient(self):
        from core.libs.email import EmailContent, send_email

        with patch('django.core.mail.EmailMultiAlternatives.send', side_effect=smtplib.SMTPServerDisconnected('gone')):
            result = send_email(EmailContent(subject='Hi', text='Body', to_emails=['a@example.com']))

        self.assertFalse(result.success)
        self.assertTrue(result.transient)


class NotificationApiTests(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(email='reader@example.com', password='Str0ng-Passw0rd!')
        self.other = User.objects.create_user(email='other@example.com', password='Str0ng-Passw0rd!')
        self.client.force_authenticate(user=self.user)
        self.first = NotificationService.create_notification(self.user, 'One', 'First message')
        self.second = NotificationService.create_notification(self.user, 'Two', 'Second message')
        NotificationService.create_notification(self.other, 'Private', 'Not yours')

    def test_list_is_scoped_to_user(self):
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_mark_single_read(self):
        response = self.client.post(f'/api/v1/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(NotificationService.get_unread_count(self.user), 1)

    def test_mark_all_read(self):
        response = self.client.post('/api/v1/notifications/mark_read/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(NotificationService.get_unread_count(self.user), 0)
        self.assertEqual(NotificationService.get_unread_count(self.other), 1)

    def test_counts_single_out_approval_requests(self):
        from core.models_notifications import NotificationCategory, NotificationType

        NotificationService.create_notification(
            self.user, 'Approval Required', 'Please respond',
            notification_type=NotificationType.APPROVAL,
            category=NotificationCategory.PARTNERS,
            metadata={'account_id': 'abc'},
        )

        response = self.client.get('/api/v1/notifications/counts/')
        self.assertEqual(response.data['unread'], 3)
        self.assertEqual(response.data['approvals'], 1)
        self.assertEqual(response.data['by_category'], {'SYSTEM': 2, 'PARTNERS': 1})

        response = self.client.get('/api/v1/notifications/unread/')
        approval = next(n for n in response.data if n['notification_type'] == 'APPROVAL')
        self.assertTrue(approval['requires_response'])
        self.assertEqual(approval['account_id'], 'abc')
