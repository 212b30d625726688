from django.contrib import admin
from .models import CompanyPartner, PartnerInvitation, PartnershipPartner, TrustPartner


@admin.register(CompanyPartner, TrustPartner, PartnershipPartner)
class PartnerRecordAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'account', 'role', 'status', 'invited_at', 'responded_at']
    list_filter = ['status']
    search_fields = ['email', 'name', 'account__name']
    raw_id_fields = ['account', 'user', 'invited_by']


@admin.register(PartnerInvitation)
class PartnerInvitationAdmin(admin.ModelAdmin):
    list_display = ['email', 'kind', 'account', 'expires_at', 'accepted_at', 'created_at']
    list_filter = ['kind']
    search_fields = ['email', 'account__name']
    raw_id_fields = ['account', 'invited_by']
    readonly_fields = ['token_hash']
