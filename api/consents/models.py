"""
Consent Models
==============
Signed legal agreements. Rows are append-only: a re-signature adds a new
row, nothing is edited or deleted through the application.
"""
import uuid
from django.conf import settings
from django.db import models


class ConsentType(models.TextChoices):
    TAX_AGENT_AUTHORITY = 'TAX_AGENT_AUTHORITY', 'Tax Agent Authority'
    ENGAGEMENT_LETTER = 'ENGAGEMENT_LETTER', 'Engagement Letter'
    # Accepted once at registration time
    TERMS_OF_SERVICE = 'TERMS_OF_SERVICE', 'Terms of Service'
    PRIVACY_POLICY = 'PRIVACY_POLICY', 'Privacy Policy'
    DATA_PROCESSING = 'DATA_PROCESSING', 'Data Processing Agreement'


class SignatureType(models.TextChoices):
    DRAW = 'draw', 'Drawn'
    TYPE = 'type', 'Typed'


class ImmutableConsentError(Exception):
    """Raised on any attempt to change or remove a recorded consent."""


class LegalConsent(models.Model):
    id = models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True)
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='consents')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='consents')
    consent_type = models.CharField(max_length=30, choices=ConsentType.choices)
    document_version = models.CharField(max_length=20)

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)

    # Typed name or a drawn-image data URI
    signature_data = models.TextField(blank=True)
    signature_type = models.CharField(max_length=10, choices=SignatureType.choices, blank=True)
    signed_name = models.CharField(max_length=255, blank=True)

    accepted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-accepted_at']
        indexes = [
            models.Index(fields=['account', 'consent_type'], name='consents_le_account_a91f3c_idx'),
        ]

    def __str__(self):
        return f"{self.consent_type} v{self.document_version} for {self.account_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableConsentError("Legal consents cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableConsentError("Legal consents cannot be deleted.")
