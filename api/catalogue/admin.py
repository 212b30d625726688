from django.contrib import admin
from .models import AccountService, Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'category', 'requires_consent', 'is_active', 'sort_order']
    list_filter = ['category', 'is_active', 'requires_consent']
    search_fields = ['code', 'name']


@admin.register(AccountService)
class AccountServiceAdmin(admin.ModelAdmin):
    list_display = ['service', 'account', 'financial_year', 'status', 'payment_status', 'purchased_at']
    list_filter = ['status', 'payment_status']
    search_fields = ['account__name', 'service__code', 'transaction_id', 'stripe_session_id']
    raw_id_fields = ['account', 'service']
    readonly_fields = ['id', 'purchased_at', 'paid_at', 'activated_at', 'completed_at']
