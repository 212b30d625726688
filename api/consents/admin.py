from django.contrib import admin
from .models import LegalConsent


@admin.register(LegalConsent)
class LegalConsentAdmin(admin.ModelAdmin):
    list_display = ['account', 'consent_type', 'document_version', 'user', 'accepted_at']
    list_filter = ['consent_type', 'document_version']
    search_fields = ['account__name', 'user__email', 'signed_name']
    raw_id_fields = ['account', 'user']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
