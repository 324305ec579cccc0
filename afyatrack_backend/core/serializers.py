"""Serializers for the core app.

Contains serializers for Facility, User and the authentication endpoints.
Follows the Read/Write serializer pattern.
"""

from rest_framework import serializers

from afyatrack_backend.core import tokens
from afyatrack_backend.core.models import Facility, User


# -----------------------------------------------------------------------------
# Facility Serializers
# -----------------------------------------------------------------------------


class FacilitySummarySerializer(serializers.ModelSerializer):
    """Compact facility representation embedded in user payloads."""

    class Meta:
        model = Facility
        fields = ['id', 'name', 'type']
        read_only_fields = fields


class FacilitySerializer(serializers.ModelSerializer):
    """Read-only serializer for Facility model."""

    class Meta:
        model = Facility
        fields = [
            'id',
            'name',
            'type',
            'address',
            'phone',
            'email',
            'region',
            'district',
            'ward',
            'license_number',
            'is_active',
        ]
        read_only_fields = fields


# -----------------------------------------------------------------------------
# User Serializers
# -----------------------------------------------------------------------------


class UserSerializer(serializers.ModelSerializer):
    """Read-only serializer for User model with nested facility."""

    facility = FacilitySummarySerializer(read_only=True)
    name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'name',
            'role',
            'license_number',
            'facility',
            'is_active',
            'last_login',
            'date_joined',
        ]
        read_only_fields = fields

    def get_name(self, obj):
        return obj.get_full_name() or obj.email


class UserProfileUpdateSerializer(serializers.ModelSerializer):
    """Self-service profile update (role, e-mail and facility are not editable)."""

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'license_number']

    def validate_license_number(self, value):
        value = (value or '').strip()
        if value and len(value) < 5:
            raise serializers.ValidationError('License number must be at least 5 characters if provided.')
        return value


# -----------------------------------------------------------------------------
# Authentication Serializers
# -----------------------------------------------------------------------------


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(min_length=2, max_length=150)
    last_name = serializers.CharField(min_length=2, max_length=150)
    role = serializers.ChoiceField(
        choices=sorted(tokens.SELF_REGISTRATION_ROLES),
        default=User.Role.DOCTOR,
    )
    license_number = serializers.CharField(required=False, allow_blank=True, default='')
    facility_id = serializers.IntegerField(required=False, allow_null=True, default=None)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_license_number(self, value):
        value = (value or '').strip()
        if value and len(value) < 5:
            raise serializers.ValidationError('License number must be at least 5 characters if provided.')
        return value


class LoginSerializer(serializers.Serializer):
    """Shape of the login body.

    Credentials are checked once, by tokens.login; bad ones raise
    InvalidCredentials (401), not a validation error.
    """

    email = serializers.EmailField(required=True)
    password = serializers.CharField(required=True, write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    """Body of /auth/refresh/ and /auth/logout/."""

    refresh_token = serializers.CharField(required=True, max_length=256, trim_whitespace=True)


class PasswordChangeSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True, required=True)
    new_password = serializers.CharField(write_only=True, required=True, min_length=8)

    def validate(self, attrs):
        if attrs['old_password'] == attrs['new_password']:
            raise serializers.ValidationError({'new_password': 'New password must differ from the current one.'})
        return attrs


def token_response(user, pair):
    """Response body shared by register, login and refresh."""
    return {
        **pair.as_dict(),
        'user': UserSerializer(user).data,
    }
