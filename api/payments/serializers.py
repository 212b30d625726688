from rest_framework import serializers


class CreateCheckoutSerializer(serializers.Serializer):
    account_id = serializers.UUIDField()
    service_id = serializers.UUIDField()
    financial_year = serializers.RegexField(
        r'^\d{4}(-\d{2,4})?$', required=False, allow_blank=True, max_length=9,
    )
    notes = serializers.CharField(required=False, allow_blank=True)
    success_url = serializers.URLField(required=False)
    cancel_url = serializers.URLField(required=False)


class VerifyPaymentSerializer(serializers.Serializer):
    purchase_id = serializers.UUIDField()
    session_id = serializers.CharField(max_length=255)
