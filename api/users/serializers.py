from rest_framework import serializers
from .models import User


class UserProfileSerializer(serializers.ModelSerializer):
    """The caller's own profile, with a summary of their portal accounts"""
    display_name = serializers.CharField(read_only=True)
    account_count = serializers.SerializerMethodField()
    default_account_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'full_name', 'display_name', 'phone', 'timezone', 'language',
            'role', 'is_staff', 'account_count', 'default_account_id', 'created_at',
        ]
        read_only_fields = ['id', 'email', 'role', 'is_staff', 'created_at']

    def get_account_count(self, obj):
        return obj.accounts.count()

    def get_default_account_id(self, obj):
        account = obj.accounts.filter(is_default=True).only('id').first()
        return str(account.pk) if account else None

    def validate_phone(self, value):
        value = (value or '').strip()
        if value and not value.lstrip('+').replace(' ', '').isdigit():
            raise serializers.ValidationError('Enter digits only, optionally starting with +.')
        return value or None
