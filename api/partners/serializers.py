from rest_framework import serializers

from .models import CompanyPartner, PartnershipPartner, TrustPartner, TrustRole

PARTNER_BASE_FIELDS = [
    'id', 'kind', 'account', 'account_name', 'email', 'name', 'role', 'display_role',
    'status', 'user', 'invited_at', 'responded_at',
]

def percent_field():
    return serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, allow_null=True
    )


class PartnerRecordSerializer(serializers.ModelSerializer):
    kind = serializers.CharField(source='KIND', read_only=True)
    account_name = serializers.CharField(source='account.name', read_only=True)
    display_role = serializers.CharField(read_only=True)


class CompanyPartnerSerializer(PartnerRecordSerializer):
    class Meta:
        model = CompanyPartner
        fields = PARTNER_BASE_FIELDS + ['is_director', 'is_shareholder', 'share_count', 'ownership_percent']
        read_only_fields = fields


class TrustPartnerSerializer(PartnerRecordSerializer):
    class Meta:
        model = TrustPartner
        fields = PARTNER_BASE_FIELDS + ['beneficiary_percent']
        read_only_fields = fields


class PartnershipPartnerSerializer(PartnerRecordSerializer):
    class Meta:
        model = PartnershipPartner
        fields = PARTNER_BASE_FIELDS + ['ownership_percent']
        read_only_fields = fields


class PartnerWriteSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    role = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CompanyPartnerWriteSerializer(PartnerWriteSerializer):
    is_director = serializers.BooleanField(required=False)
    is_shareholder = serializers.BooleanField(required=False)
    share_count = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    ownership_percent = percent_field()

    def validate(self, data):
        if self.partial:
            return data
        if not (data.get('is_director') or data.get('is_shareholder') or data.get('role')):
            raise serializers.ValidationError({'role': 'Select director, shareholder or a role.'})
        return data


class TrustPartnerWriteSerializer(PartnerWriteSerializer):
    role = serializers.ChoiceField(choices=TrustRole.choices, required=False)
    beneficiary_percent = percent_field()

    def validate(self, data):
        if not self.partial and not data.get('role'):
            raise serializers.ValidationError({'role': 'This field is required.'})
        return data


class PartnershipPartnerWriteSerializer(PartnerWriteSerializer):
    ownership_percent = percent_field()


class CompanyPartnerCreateSerializer(CompanyPartnerWriteSerializer):
    account_id = serializers.UUIDField()


class TrustPartnerCreateSerializer(TrustPartnerWriteSerializer):
    account_id = serializers.UUIDField()


class PartnershipPartnerCreateSerializer(PartnershipPartnerWriteSerializer):
    account_id = serializers.UUIDField()


class PendingInvitationSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    kind = serializers.CharField(source='KIND', read_only=True)
    email = serializers.EmailField(read_only=True)
    role = serializers.CharField(source='display_role', read_only=True)
    account_id = serializers.UUIDField(read_only=True)
    account_name = serializers.CharField(source='account.name', read_only=True)
    account_type = serializers.CharField(source='account.account_type', read_only=True)
    inviter_name = serializers.CharField(source='account.owner.display_name', read_only=True)
    invited_at = serializers.DateTimeField(read_only=True)


class RespondInvitationSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[('approve', 'Approve'), ('reject', 'Reject')])


class InvitationTokenSerializer(serializers.Serializer):
    email = serializers.EmailField()
    token = serializers.CharField(max_length=128)


class CheckEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()
