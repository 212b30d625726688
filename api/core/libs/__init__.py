# Core library modules
from core.libs.email import EmailContent, EmailResult, send_email

__all__ = [
    'EmailContent',
    'EmailResult',
    'send_email',
]
