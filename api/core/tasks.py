"""
Core Tasks
==========
Background e-mail delivery. Callers submit with ``deliver_email.delay(...)``
and never wait on the result.
"""

import logging
from celery import shared_task
from django.utils import timezone

from core.libs.email import EmailContent, send_email

logger = logging.getLogger(__name__)


def _update_log(log_id, result, attempts):
    if not log_id:
        return
    from core.models_notifications import NotificationLog, DeliveryStatus

    updates = {'attempts': attempts}
    if result.success:
        updates.update(status=DeliveryStatus.SENT, sent_at=timezone.now(), error_message=None)
    else:
        updates.update(status=DeliveryStatus.FAILED, error_message=result.error)
    NotificationLog.objects.filter(pk=log_id).update(**updates)


@shared_task(bind=True, max_retries=3, default_retry_delay=30, ignore_result=True)
def deliver_email(self, to: str, subject: str, text: str, html: str = '', log_id: str = None):
    """
    Send a single e-mail.

    Args:
        to: Recipient address
        subject: Subject line
        text: Plain-text body
        html: Optional HTML alternative
        log_id: NotificationLog row to keep in step with the outcome

    Transport errors are retried with a fixed delay; anything else is
    recorded as failed straight away.
    """
    result = send_email(EmailContent(subject=subject, text=text, html=html, to_emails=[to]))
    attempts = self.request.retries + 1
    _update_log(log_id, result, attempts)

    if result.success:
        logger.info(f"Email '{subject}' delivered (attempt {attempts})")
        return True

    if result.transient and self.request.retries < self.max_retries:
        raise self.retry()

    logger.error(f"Email '{subject}' failed after {attempts} attempt(s): {result.error}")
    return False
