from rest_framework import serializers

from .models import ConsentType, LegalConsent, SignatureType


class LegalConsentSerializer(serializers.ModelSerializer):
    account_name = serializers.CharField(source='account.name', read_only=True)
    consent_type_display = serializers.CharField(source='get_consent_type_display', read_only=True)

    class Meta:
        model = LegalConsent
        fields = [
            'id', 'account', 'account_name', 'consent_type', 'consent_type_display',
            'document_version', 'signature_type', 'signed_name', 'accepted_at',
        ]
        read_only_fields = fields


class AdminLegalConsentSerializer(LegalConsentSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta(LegalConsentSerializer.Meta):
        fields = LegalConsentSerializer.Meta.fields + ['user', 'user_email', 'ip_address', 'user_agent']
        read_only_fields = fields


class AcceptConsentsSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    consent_types = serializers.ListField(
        child=serializers.ChoiceField(choices=ConsentType.choices),
        allow_empty=False,
    )
    document_version = serializers.CharField(max_length=20, required=False, allow_blank=True)
    signature_data = serializers.CharField(required=False, allow_blank=True)
    signature_type = serializers.ChoiceField(choices=SignatureType.choices, required=False, allow_blank=True)
    signed_name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate(self, data):
        if data.get('signature_data') and not data.get('signature_type'):
            raise serializers.ValidationError({'signature_type': 'Required when a signature is supplied.'})
        return data


class ConsentCheckSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    account_type = serializers.CharField()
    required = serializers.ListField(child=serializers.CharField())
    missing = serializers.ListField(child=serializers.CharField())
    has_all_required = serializers.BooleanField()
