"""
Celery Configuration
====================
Background delivery of portal e-mail (partner invitations, notifications).
"""

import os
from celery import Celery
from django.conf import settings

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'core.settings')

app = Celery('client_portal')

# CELERY_* Django settings (broker, result backend, eager mode in tests)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    result_expires=3600,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,

    task_annotations={
        'core.tasks.deliver_email': {'rate_limit': '60/m'},
    },

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,
)

app.autodiscover_tasks(lambda: settings.INSTALLED_APPS)
