"""
Partner Models
==============
Stakeholders invited onto an account by its owner: company directors and
shareholders, trustees and beneficiaries, and partnership partners.

The owner is never a partner record; their own involvement lives on the
account profile as the ``is_self_*`` flags.
"""
import hashlib
import secrets
from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounts.models import AccountType
from core.models import BaseModel

PERCENT_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


class PartnerStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'
    REMOVED = 'REMOVED', 'Removed'


class PartnerKind(models.TextChoices):
    COMPANY = 'company', 'Company Partner'
    TRUST = 'trust', 'Trust Partner'
    PARTNERSHIP = 'partnership', 'Partnership Partner'


class PartnerRecord(BaseModel):
    KIND = None
    ACCOUNT_TYPE = None
    EDITABLE_FIELDS = ('name', 'role')

    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='%(class)ss')
    email = models.EmailField()
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=PartnerStatus.choices, default=PartnerStatus.PENDING)

    # Set once the invitee responds or accepts with a token
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_memberships',
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    invited_at = models.DateTimeField(default=timezone.now)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True
        ordering = ['invited_at']
        constraints = [
            models.UniqueConstraint(
                fields=['account', 'email'],
                condition=~Q(status='REMOVED'),
                name='%(app_label)s_%(class)s_unique_active_email',
            ),
        ]

    def __str__(self):
        return f"{self.email} on {self.account.name} ({self.status})"

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)

    @property
    def display_role(self):
        return self.role


class CompanyPartner(PartnerRecord):
    KIND = PartnerKind.COMPANY.value
    ACCOUNT_TYPE = AccountType.COMPANY
    EDITABLE_FIELDS = ('name', 'role', 'is_director', 'is_shareholder', 'share_count', 'ownership_percent')

    is_director = models.BooleanField(default=False)
    is_shareholder = models.BooleanField(default=False)
    share_count = models.PositiveIntegerField(null=True, blank=True)
    ownership_percent = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True, validators=PERCENT_VALIDATORS
    )

    class Meta(PartnerRecord.Meta):
        verbose_name = 'Company Partner'

    @property
    def display_role(self):
        if self.is_director and self.is_shareholder:
            return 'Director & Shareholder'
        if self.is_director:
            return 'Director'
        if self.is_shareholder:
            return 'Shareholder'
        return self.role


class TrustRole(models.TextChoices):
    TRUSTEE = 'TRUSTEE', 'Trustee'
    BENEFICIARY = 'BENEFICIARY', 'Beneficiary'
    APPOINTOR = 'APPOINTOR', 'Appointor'
    SETTLOR = 'SETTLOR', 'Settlor'


class TrustPartner(PartnerRecord):
    KIND = PartnerKind.TRUST.value
    ACCOUNT_TYPE = AccountType.TRUST
    EDITABLE_FIELDS = ('name', 'role', 'beneficiary_percent')

    beneficiary_percent = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True, validators=PERCENT_VALIDATORS
    )

    class Meta(PartnerRecord.Meta):
        verbose_name = 'Trust Partner'

    @property
    def display_role(self):
        return TrustRole(self.role).label if self.role in TrustRole.values else self.role


class PartnershipPartner(PartnerRecord):
    KIND = PartnerKind.PARTNERSHIP.value
    ACCOUNT_TYPE = AccountType.PARTNERSHIP
    EDITABLE_FIELDS = ('name', 'role', 'ownership_percent')

    ownership_percent = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True, validators=PERCENT_VALIDATORS
    )

    class Meta(PartnerRecord.Meta):
        verbose_name = 'Partnership Partner'

    @property
    def display_role(self):
        return self.role or 'Partner'


PARTNER_MODELS = {
    PartnerKind.COMPANY.value: CompanyPartner,
    PartnerKind.TRUST.value: TrustPartner,
    PartnerKind.PARTNERSHIP.value: PartnershipPartner,
}


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode('utf-8')).hexdigest()


class PartnerInvitation(BaseModel):
    """
    One-time token sent with an invitation e-mail.
    Only the SHA-256 of the token is stored. Tokens expire; partner records do not.
    """
    kind = models.CharField(max_length=20, choices=PartnerKind.choices)
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='partner_invitations')
    email = models.EmailField()
    token_hash = models.CharField(max_length=64, unique=True)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='partner_invitations_sent',
    )
    expires_at = models.DateTimeField()
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email', 'accepted_at'], name='partners_pa_email_7e21b4_idx'),
        ]

    def __str__(self):
        return f"Invitation to {self.email} for {self.account.name}"

    @property
    def is_expired(self):
        return timezone.now() > self.expires_at

    @property
    def is_valid(self):
        return not self.is_expired and self.accepted_at is None

    @classmethod
    def issue(cls, kind, account, email, invited_by=None):
        """Create an invitation and return it with the raw token (never stored)."""
        raw_token = secrets.token_urlsafe(32)
        invitation = cls.objects.create(
            kind=kind,
            account=account,
            email=(email or '').strip().lower(),
            token_hash=hash_token(raw_token),
            invited_by=invited_by,
            expires_at=timezone.now() + timedelta(days=settings.PARTNER_INVITATION_TTL_DAYS),
        )
        return invitation, raw_token

    @classmethod
    def find_valid(cls, email, raw_token):
        invitation = cls.objects.select_related('account', 'account__owner').filter(
            email=(email or '').strip().lower(),
            token_hash=hash_token(raw_token or ''),
            accepted_at__isnull=True,
        ).first()
        if invitation is None or not invitation.is_valid:
            return None
        return invitation
