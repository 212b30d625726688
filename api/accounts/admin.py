from django.contrib import admin
from .models import Account, IndividualProfile, CompanyProfile, TrustProfile, PartnershipProfile


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'account_type', 'status', 'owner', 'is_default', 'created_at']
    list_filter = ['account_type', 'status']
    search_fields = ['name', 'owner__email']
    raw_id_fields = ['owner']
    readonly_fields = ['id', 'created_at', 'updated_at', 'submitted_at', 'closed_at']


@admin.register(IndividualProfile, CompanyProfile, TrustProfile, PartnershipProfile)
class AccountProfileAdmin(admin.ModelAdmin):
    list_display = ['account', 'created_at']
    search_fields = ['account__name']
    raw_id_fields = ['account']
