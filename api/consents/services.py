"""
Consent Service
===============
Records signed agreements and releases purchases that were waiting on them.
"""
import logging
from typing import Iterable, List

from django.conf import settings
from django.db import transaction
from django.utils.translation import gettext as _

from core.audit import AuditAction, get_client_ip, get_user_agent, write_audit_log
from core.exceptions import ValidationFailed

from .models import ConsentType, LegalConsent

logger = logging.getLogger(__name__)


def record_consents(
    account,
    user,
    consent_types: Iterable[str],
    document_version: str = None,
    signature_data: str = '',
    signature_type: str = '',
    signed_name: str = '',
    request=None,
) -> List[LegalConsent]:
    """
    Append one consent row per type, then release any consent-held purchases
    once the account's required set is complete.
    """
    consent_types = list(dict.fromkeys(consent_types))
    if not consent_types:
        raise ValidationFailed(_('At least one consent type is required.'))
    unknown = [c for c in consent_types if c not in ConsentType.values]
    if unknown:
        raise ValidationFailed(_('Unknown consent type: %(types)s') % {'types': ', '.join(unknown)})

    version = document_version or settings.CONSENT_DOCUMENT_VERSION
    ip_address = get_client_ip(request)
    user_agent = get_user_agent(request) or ''

    with transaction.atomic():
        consents = LegalConsent.objects.bulk_create([
            LegalConsent(
                account=account,
                user=user,
                consent_type=consent_type,
                document_version=version,
                ip_address=ip_address,
                user_agent=user_agent,
                signature_data=signature_data or '',
                signature_type=signature_type or '',
                signed_name=signed_name or '',
            )
            for consent_type in consent_types
        ])

        from catalogue.gate import release_consent_held_purchases
        released = release_consent_held_purchases(account)

    write_audit_log(
        AuditAction.CONSENT_ACCEPTED,
        user_id=user.pk,
        target_id=account.pk,
        target_type='Account',
        request=request,
        details={
            'consentTypes': consent_types,
            'documentVersion': version,
            'signatureType': signature_type or None,
            'releasedPurchases': released,
        },
    )
    logger.info(f"Recorded {len(consents)} consent(s) for account {account.pk}")
    return consents
