import logging
import smtplib
import socket
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives

logger = logging.getLogger(__name__)

# Errors worth retrying: the message itself is fine, the transport is not
TRANSIENT_EMAIL_ERRORS = (smtplib.SMTPException, socket.error, TimeoutError)


@dataclass
class EmailContent:
    subject: str
    text: str
    to_emails: List[str]
    html: str = ''
    from_email: Optional[str] = None
    reply_to: Optional[str] = None

    def __post_init__(self):
        if not self.to_emails:
            raise ValueError("`to_emails` is required.")
        if not self.subject:
            raise ValueError("`subject` is required.")


@dataclass
class EmailResult:
    success: bool
    error: str = ''
    transient: bool = False


def send_email(content: EmailContent) -> EmailResult:
    """
    Send one message through Django's configured e-mail backend.

    Never raises; the caller decides whether a failed result is retried.
    """
    message = EmailMultiAlternatives(
        subject=content.subject,
        body=content.text,
        from_email=content.from_email or settings.DEFAULT_FROM_EMAIL,
        to=content.to_emails,
        reply_to=[content.reply_to] if content.reply_to else None,
    )
    if content.html:
        message.attach_alternative(content.html, 'text/html')

    try:
        sent = message.send(fail_silently=False)
    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {e}")
        return EmailResult(success=False, error=str(e))
    except TRANSIENT_EMAIL_ERRORS as e:
        logger.warning(f"Email to {len(content.to_emails)} recipient(s) failed: {e}")
        return EmailResult(success=False, error=str(e), transient=True)

    if not sent:
        return EmailResult(success=False, error='Backend reported no messages sent')
    return EmailResult(success=True)
