"""
Audit Log
=========
Append-only audit trail written to the ``audit`` logger as one JSON
document per line. Detail payloads are PII-masked before emission.

Usage:
    from core.audit import AuditAction, write_audit_log

    write_audit_log(
        AuditAction.PARTNER_INVITED,
        user_id=request.user.id,
        target_id=partner.id,
        target_type='CompanyPartner',
        request=request,
        details={'email': partner.email},
    )
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from django.db import models
from django.utils import timezone

audit_logger = logging.getLogger('audit')

USER_AGENT_MAX_LENGTH = 200

_EMAIL_RE = re.compile(r'^(.{2})(.*)(@.*)$')
_SECRET_KEYS = ('password', 'token', 'secret', 'apikey', 'api_key')


class AuditAction(models.TextChoices):
    ACCOUNT_CREATED = 'ACCOUNT_CREATED'
    ACCOUNT_SUBMITTED = 'ACCOUNT_SUBMITTED'
    ACCOUNT_CLOSED_BY_USER = 'ACCOUNT_CLOSED_BY_USER'
    ACCOUNT_REOPENED_BY_USER = 'ACCOUNT_REOPENED_BY_USER'
    ACCOUNT_PERMANENTLY_DELETED = 'ACCOUNT_PERMANENTLY_DELETED'
    ACCOUNT_STATUS_CHANGED = 'ACCOUNT_STATUS_CHANGED'
    PARTNER_INVITED = 'PARTNER_INVITED'
    PARTNER_UPDATED = 'PARTNER_UPDATED'
    PARTNER_ACCEPTED = 'PARTNER_ACCEPTED'
    PARTNER_REJECTED = 'PARTNER_REJECTED'
    PARTNER_REMOVED = 'PARTNER_REMOVED'
    PARTNER_DELETED = 'PARTNER_DELETED'
    CONSENT_ACCEPTED = 'CONSENT_ACCEPTED'
    SERVICE_PURCHASED = 'SERVICE_PURCHASED'
    SERVICE_STATUS_CHANGED = 'SERVICE_STATUS_CHANGED'
    PAYMENT_COMPLETED = 'PAYMENT_COMPLETED'
    PAYMENT_FAILED = 'PAYMENT_FAILED'
    PAYMENT_REFUNDED = 'PAYMENT_REFUNDED'
    ACCESS_DENIED = 'ACCESS_DENIED'


def _mask_value(key: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    lowered = key.lower()
    if any(secret in lowered for secret in _SECRET_KEYS):
        return '[REDACTED]'
    if 'email' in lowered:
        return _EMAIL_RE.sub(r'\1***\3', value)
    if 'phone' in lowered:
        return '*' * max(len(value) - 4, 0) + value[-4:]
    if 'tfn' in lowered:
        return '***-***-***'
    if 'abn' in lowered:
        return '*' * max(len(value) - 3, 0) + value[-3:]
    return value


def mask_pii(data: Any) -> Any:
    """
    Return a copy of ``data`` with e-mail, phone, TFN and ABN shaped
    fields masked and credentials redacted. Keys are matched by substring,
    so ``owner_email`` and ``mobile_phone`` are covered too.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if isinstance(value, (dict, list, tuple)):
                masked[key] = mask_pii(value)
            else:
                masked[key] = _mask_value(str(key), value)
        return masked
    if isinstance(data, (list, tuple)):
        return [mask_pii(item) for item in data]
    return data


def get_client_ip(request) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def get_user_agent(request) -> Optional[str]:
    if request is None:
        return None
    return (request.META.get('HTTP_USER_AGENT') or '')[:USER_AGENT_MAX_LENGTH] or None


def write_audit_log(
    action: str,
    user_id=None,
    target_id=None,
    target_type: Optional[str] = None,
    request=None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Emit one audit entry and return it (already masked)."""
    entry = {
        'timestamp': timezone.now().isoformat(),
        'type': 'AUDIT',
        'action': str(action),
        'userId': str(user_id) if user_id else None,
        'targetId': str(target_id) if target_id else None,
        'targetType': target_type,
        'ipAddress': get_client_ip(request),
        'userAgent': get_user_agent(request),
        'details': mask_pii(details or {}),
    }
    audit_logger.info(json.dumps(entry, default=str))
    return entry
