"""
Account Models
==============
Tax-entity accounts owned by a portal user. Every account carries exactly
one profile record matching its entity type.
"""
from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import BaseModel


class AccountType(models.TextChoices):
    INDIVIDUAL = 'INDIVIDUAL', 'Individual'
    COMPANY = 'COMPANY', 'Company'
    TRUST = 'TRUST', 'Trust'
    PARTNERSHIP = 'PARTNERSHIP', 'Partnership'


class AccountStatus(models.TextChoices):
    DRAFT = 'DRAFT', 'Draft'
    PENDING = 'PENDING', 'Pending Review'
    ACTIVE = 'ACTIVE', 'Active'
    SUSPENDED = 'SUSPENDED', 'Suspended'
    CLOSED = 'CLOSED', 'Closed'


class Account(BaseModel):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='accounts'
    )
    name = models.CharField(max_length=255)
    account_type = models.CharField(max_length=20, choices=AccountType.choices)
    status = models.CharField(max_length=20, choices=AccountStatus.choices, default=AccountStatus.DRAFT)
    is_default = models.BooleanField(default=False)

    submitted_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-is_default', '-created_at']
        indexes = [
            models.Index(fields=['owner', 'status'], name='accounts_ac_owner_i_4c7d2e_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['owner'],
                condition=Q(is_default=True),
                name='accounts_one_default_per_owner',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.account_type})"

    @property
    def is_individual(self):
        return self.account_type == AccountType.INDIVIDUAL

    @property
    def profile(self):
        """The type-specific profile, or None if it is missing."""
        model = PROFILE_MODELS.get(self.account_type)
        if model is None:
            return None
        return model.objects.filter(account=self).first()

    def is_owned_by(self, user):
        return user is not None and self.owner_id == user.pk


class AccountProfile(BaseModel):
    account = models.OneToOneField(Account, on_delete=models.CASCADE, related_name='%(class)s')
    abn = models.CharField(max_length=14, blank=True)
    tfn = models.CharField(max_length=11, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)

    class Meta:
        abstract = True


class IndividualProfile(AccountProfile):
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    occupation = models.CharField(max_length=150, blank=True)


class CompanyProfile(AccountProfile):
    company_name = models.CharField(max_length=255, blank=True)
    acn = models.CharField(max_length=11, blank=True)
    # The owner is never a CompanyPartner row; their own roles live here
    is_self_director = models.BooleanField(default=True)
    is_self_shareholder = models.BooleanField(default=False)
    self_share_count = models.PositiveIntegerField(null=True, blank=True)


class TrustProfile(AccountProfile):
    class TrustType(models.TextChoices):
        DISCRETIONARY = 'DISCRETIONARY', 'Discretionary / Family'
        UNIT = 'UNIT', 'Unit'
        FIXED = 'FIXED', 'Fixed'
        SMSF = 'SMSF', 'Self-managed Super Fund'
        OTHER = 'OTHER', 'Other'

    trust_name = models.CharField(max_length=255, blank=True)
    trust_type = models.CharField(max_length=20, choices=TrustType.choices, default=TrustType.DISCRETIONARY)
    is_self_trustee = models.BooleanField(default=True)
    is_self_beneficiary = models.BooleanField(default=False)


class PartnershipProfile(AccountProfile):
    partnership_name = models.CharField(max_length=255, blank=True)
    is_self_partner = models.BooleanField(default=True)
    self_ownership_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)


PROFILE_MODELS = {
    AccountType.INDIVIDUAL: IndividualProfile,
    AccountType.COMPANY: CompanyProfile,
    AccountType.TRUST: TrustProfile,
    AccountType.PARTNERSHIP: PartnershipProfile,
}
