"""
Auth Serializers
================
Sign-up for portal clients. Invitees arrive from the e-mailed registration
link and may pass the invitation token straight through.
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.translation import gettext_lazy as _

from .services import normalize_email

User = get_user_model()


class SignUpSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8, style={'input_type': 'password'})
    password_confirm = serializers.CharField(write_only=True, style={'input_type': 'password'})
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    # Raw token from /register?invite=...
    invite_token = serializers.CharField(max_length=128, required=False, allow_blank=True, write_only=True)

    def validate_email(self, value):
        email = normalize_email(value)
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError(_("An account with this email already exists. Please sign in."))
        return email

    def validate_full_name(self, value):
        value = ' '.join(value.split())
        if not value:
            raise serializers.ValidationError(_("Name is required."))
        return value

    def validate(self, data):
        if data['password'] != data['password_confirm']:
            raise serializers.ValidationError({'password_confirm': _("Passwords do not match.")})
        user = User(email=data['email'], full_name=data['full_name'])
        try:
            validate_password(data['password'], user=user)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': list(e.messages)})
        return data

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            full_name=validated_data['full_name'],
            phone=validated_data.get('phone') or None,
        )
