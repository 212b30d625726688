"""
Consent Requirement Resolver
============================
Which consents an account needs before its services can proceed.

    required(INDIVIDUAL)                    = {TAX_AGENT_AUTHORITY}
    required(COMPANY | TRUST | PARTNERSHIP) = {TAX_AGENT_AUTHORITY, ENGAGEMENT_LETTER}

Any recorded row of a type counts; versions and age are not checked.
"""
from typing import List, Set

from accounts.models import AccountType

from .models import ConsentType, LegalConsent

ALWAYS_REQUIRED = (ConsentType.TAX_AGENT_AUTHORITY,)
REQUIRED_FOR_ENTITIES = (ConsentType.ENGAGEMENT_LETTER,)


def required_consents(account_type: str) -> List[str]:
    required = [c.value for c in ALWAYS_REQUIRED]
    if account_type != AccountType.INDIVIDUAL:
        required.extend(c.value for c in REQUIRED_FOR_ENTITIES)
    return required


def recorded_consent_types(account) -> Set[str]:
    return set(
        LegalConsent.objects.filter(account=account)
        .values_list('consent_type', flat=True)
        .distinct()
    )


def missing_consents(account) -> List[str]:
    recorded = recorded_consent_types(account)
    return [c for c in required_consents(account.account_type) if c not in recorded]


def has_required_consents(account) -> bool:
    return not missing_consents(account)
