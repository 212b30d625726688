from rest_framework import serializers

from .models import (
    Account, AccountStatus, AccountType,
    IndividualProfile, CompanyProfile, TrustProfile, PartnershipProfile,
)


def mask_identifier(value, visible=2):
    """Show only the last ``visible`` characters of a TFN/ABN/ACN."""
    if not value:
        return value
    return '*' * max(len(value) - visible, 0) + value[-visible:]


class MaskedIdentifiersMixin:
    masked_fields = ('tfn', 'abn', 'acn')

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for field in self.masked_fields:
            if field in data:
                data[field] = mask_identifier(data[field])
        return data


PROFILE_COMMON_FIELDS = ['abn', 'tfn', 'phone', 'address']


class IndividualProfileSerializer(MaskedIdentifiersMixin, serializers.ModelSerializer):
    class Meta:
        model = IndividualProfile
        fields = PROFILE_COMMON_FIELDS + ['first_name', 'last_name', 'date_of_birth', 'occupation']


class CompanyProfileSerializer(MaskedIdentifiersMixin, serializers.ModelSerializer):
    class Meta:
        model = CompanyProfile
        fields = PROFILE_COMMON_FIELDS + [
            'company_name', 'acn', 'is_self_director', 'is_self_shareholder', 'self_share_count',
        ]


class TrustProfileSerializer(MaskedIdentifiersMixin, serializers.ModelSerializer):
    class Meta:
        model = TrustProfile
        fields = PROFILE_COMMON_FIELDS + ['trust_name', 'trust_type', 'is_self_trustee', 'is_self_beneficiary']


class PartnershipProfileSerializer(MaskedIdentifiersMixin, serializers.ModelSerializer):
    self_ownership_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True
    )

    class Meta:
        model = PartnershipProfile
        fields = PROFILE_COMMON_FIELDS + ['partnership_name', 'is_self_partner', 'self_ownership_percent']


PROFILE_SERIALIZERS = {
    AccountType.INDIVIDUAL: IndividualProfileSerializer,
    AccountType.COMPANY: CompanyProfileSerializer,
    AccountType.TRUST: TrustProfileSerializer,
    AccountType.PARTNERSHIP: PartnershipProfileSerializer,
}


class AccountSerializer(serializers.ModelSerializer):
    profile = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = [
            'id', 'name', 'account_type', 'status', 'is_default',
            'submitted_at', 'closed_at', 'created_at', 'updated_at', 'profile',
        ]
        read_only_fields = fields

    def get_profile(self, obj):
        profile = obj.profile
        if profile is None:
            return None
        return PROFILE_SERIALIZERS[obj.account_type](profile).data


class AccountDetailSerializer(AccountSerializer):
    missing_consents = serializers.SerializerMethodField()

    class Meta(AccountSerializer.Meta):
        fields = AccountSerializer.Meta.fields + ['missing_consents']
        read_only_fields = fields

    def get_missing_consents(self, obj):
        from consents.resolver import missing_consents
        return missing_consents(obj)


class AccountCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    account_type = serializers.ChoiceField(choices=AccountType.choices)
    profile = serializers.DictField(required=False, default=dict)

    def validate(self, data):
        profile_serializer = PROFILE_SERIALIZERS[data['account_type']](data=data.get('profile') or {})
        if not profile_serializer.is_valid():
            raise serializers.ValidationError({'profile': profile_serializer.errors})
        data['profile'] = profile_serializer.validated_data
        return data


class AccountStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AccountStatus.choices)
