from unittest.mock import patch

import redis
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from health import views


class HealthCheckTests(APITestCase):

    def test_basic_health_check_is_public(self):
        response = self.client.get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')

    def test_detailed_health_check(self):
        response = self.client.get('/api/v1/health/detailed/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')
        self.assertEqual(response.data['services']['database']['status'], 'ok')
        self.assertEqual(response.data['services']['cache']['status'], 'ok')
        self.assertEqual(response.data['services']['redis']['status'], 'not_configured')

    @patch('health.views.check_database', return_value={'status': 'error', 'message': 'down'})
    def test_database_failure_degrades(self, _check):
        response = self.client.get('/api/v1/health/detailed/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['status'], 'degraded')

    @override_settings(STRIPE_SECRET_KEY='sk_test_123', STRIPE_WEBHOOK_SECRET='')
    def test_payment_misconfiguration_is_not_critical(self):
        response = self.client.get('/api/v1/health/detailed/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['services']['payments']['status'], 'error')

    @override_settings(CELERY_TASK_ALWAYS_EAGER=False, CELERY_BROKER_URL='redis://localhost:6399/0')
    def test_unreachable_broker(self):
        with patch('health.views.redis.from_url') as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError('refused')
            self.assertEqual(views.check_redis()['status'], 'error')
