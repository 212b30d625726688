from rest_framework import serializers

from accounts.models import AccountType
from .models import AccountService, PurchaseStatus, Service


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = [
            'id', 'code', 'name', 'description', 'category', 'allowed_types',
            'pricing', 'requires_consent', 'is_active', 'sort_order', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_allowed_types(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Must be a list of account types.')
        unknown = [v for v in value if v not in AccountType.values]
        if unknown:
            raise serializers.ValidationError(f"Unknown account type(s): {', '.join(map(str, unknown))}")
        return value

    def validate_pricing(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Must map account types to prices.')
        for account_type, amount in value.items():
            if account_type not in AccountType.values:
                raise serializers.ValidationError(f"Unknown account type: {account_type}")
            try:
                if float(amount) < 0:
                    raise ValueError
            except (TypeError, ValueError):
                raise serializers.ValidationError(f"Invalid price for {account_type}.")
        return {k: str(v) for k, v in value.items()}


class AccountServiceOfferSerializer(serializers.ModelSerializer):
    """A catalogue entry priced for one account."""
    price = serializers.SerializerMethodField()
    already_purchased = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = ['id', 'code', 'name', 'description', 'category', 'requires_consent', 'price', 'already_purchased']

    def get_price(self, obj):
        price = obj.price_for(self.context['account'].account_type)
        return str(price) if price is not None else None

    def get_already_purchased(self, obj):
        return obj.pk in self.context.get('purchased_ids', ())


class AccountServiceSerializer(serializers.ModelSerializer):
    service_code = serializers.CharField(source='service.code', read_only=True)
    service_name = serializers.CharField(source='service.name', read_only=True)
    account_name = serializers.CharField(source='account.name', read_only=True)

    class Meta:
        model = AccountService
        fields = [
            'id', 'account', 'account_name', 'service', 'service_code', 'service_name',
            'price', 'financial_year', 'notes', 'status', 'payment_status', 'payment_method',
            'payment_amount', 'tax_amount', 'currency', 'transaction_id', 'payment_receipt',
            'paid_at', 'purchased_at', 'activated_at', 'completed_at',
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    service_id = serializers.UUIDField()
    financial_year = serializers.RegexField(
        r'^\d{4}(-\d{2,4})?$', required=False, allow_blank=True, max_length=9,
    )
    notes = serializers.CharField(required=False, allow_blank=True)


class PurchaseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PurchaseStatus.choices)
