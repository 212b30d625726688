"""
Service Catalogue Models
========================
Catalogue entries and the purchase rows that attach them to accounts.
"""
from decimal import Decimal

from django.db import models
from django.db.models import Q

from core.models import BaseModel


class ServiceCategory(models.TextChoices):
    TAX = 'TAX', 'Tax Returns'
    BOOKKEEPING = 'BOOKKEEPING', 'Bookkeeping'
    COMPLIANCE = 'COMPLIANCE', 'Compliance'
    ADVISORY = 'ADVISORY', 'Advisory'
    OTHER = 'OTHER', 'Other'


class PurchaseStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CONSENT_REQUIRED = 'CONSENT_REQUIRED', 'Consent Required'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    REVIEW = 'REVIEW', 'Review'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'
    PARTIAL_REFUND = 'PARTIAL_REFUND', 'Partially Refunded'


class Service(BaseModel):
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=ServiceCategory.choices, default=ServiceCategory.TAX)
    # List of AccountType values this service can be bought for
    allowed_types = models.JSONField(default=list)
    # {"INDIVIDUAL": "150.00", "COMPANY": "450.00", ...}
    pricing = models.JSONField(default=dict)
    requires_consent = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)

    class Meta:
        ordering = ['sort_order', 'name']

    def __str__(self):
        return f"{self.code} - {self.name}"

    def allows(self, account_type) -> bool:
        return account_type in (self.allowed_types or [])

    def price_for(self, account_type):
        """Price for an account type, or None when the service has no price for it."""
        value = (self.pricing or {}).get(account_type)
        if value is None or value == '':
            return None
        return Decimal(str(value))


class AccountService(BaseModel):
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='purchases')
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='purchases')
    price = models.DecimalField(max_digits=10, decimal_places=2)
    # Blank when the service is not tied to a financial year
    financial_year = models.CharField(max_length=9, blank=True, default='')
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=PurchaseStatus.choices, default=PurchaseStatus.PENDING)

    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.CharField(max_length=20, blank=True)
    payment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, blank=True)
    stripe_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    transaction_id = models.CharField(max_length=255, blank=True, db_index=True)
    payment_receipt = models.URLField(max_length=500, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    purchased_at = models.DateTimeField(auto_now_add=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-purchased_at']
        constraints = [
            models.UniqueConstraint(
                fields=['account', 'service', 'financial_year'],
                condition=~Q(status='CANCELLED'),
                name='catalogue_unique_live_purchase',
            ),
        ]

    def __str__(self):
        year = f" {self.financial_year}" if self.financial_year else ''
        return f"{self.service.code}{year} for {self.account.name}"

    @property
    def is_paid(self):
        return self.payment_status == PaymentStatus.PAID
