from django.utils import timezone

from rest_framework import serializers

from afyatrack_backend.core.models import Facility
from afyatrack_backend.patients.models import Patient
from afyatrack_backend.patients.services import PatientQuery


class PatientReadSerializer(serializers.ModelSerializer):
    """Read-only serializer with all fields."""

    age = serializers.IntegerField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    facility_name = serializers.CharField(source='facility.name', read_only=True, default=None)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'full_name',
            'date_of_birth',
            'age',
            'gender',
            'phone',
            'email',
            'address',
            'nhif_number',
            'national_id',
            'emergency_contact_name',
            'emergency_contact_phone',
            'emergency_contact_relationship',
            'allergies',
            'chronic_conditions',
            'current_medications',
            'blood_group',
            'facility',
            'facility_name',
            'created_by',
            'created_by_name',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        user = obj.created_by
        return user.get_full_name() or user.email


class PatientListSerializer(serializers.ModelSerializer):
    """Compact row for lists and quick search."""

    age = serializers.IntegerField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'date_of_birth',
            'age',
            'gender',
            'phone',
            'nhif_number',
            'facility',
            'created_at',
        ]
        read_only_fields = fields


class PatientWriteSerializer(serializers.ModelSerializer):
    """Write serializer for create/update operations.

    Uniqueness of national ID / NHIF number is checked by the service layer
    (409), not here.
    """

    facility = serializers.PrimaryKeyRelatedField(
        queryset=Facility.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = Patient
        fields = [
            'first_name',
            'last_name',
            'date_of_birth',
            'gender',
            'phone',
            'email',
            'address',
            'nhif_number',
            'national_id',
            'emergency_contact_name',
            'emergency_contact_phone',
            'emergency_contact_relationship',
            'allergies',
            'chronic_conditions',
            'current_medications',
            'blood_group',
            'facility',
        ]
        extra_kwargs = {
            # Uniqueness is reported as 409 by the service layer.
            'nhif_number': {'validators': [], 'required': False, 'allow_null': True, 'allow_blank': True},
            'national_id': {'validators': [], 'required': False, 'allow_null': True, 'allow_blank': True},
        }

    def validate_first_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError('First name must be at least 2 characters.')
        return value

    def validate_last_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError('Last name must be at least 2 characters.')
        return value

    def validate_date_of_birth(self, value):
        if value > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future.')
        return value


class PatientQuerySerializer(serializers.Serializer):
    """Query-string filters for GET /api/patients/ (the only ones accepted)."""

    search = serializers.CharField(required=False, allow_blank=True, max_length=100, default='')
    gender = serializers.ChoiceField(choices=Patient.Gender.choices, required=False)
    facility_id = serializers.IntegerField(required=False, min_value=1)
    min_age = serializers.IntegerField(required=False, min_value=0, max_value=150)
    max_age = serializers.IntegerField(required=False, min_value=0, max_value=150)

    def validate(self, attrs):
        min_age = attrs.get('min_age')
        max_age = attrs.get('max_age')
        if min_age is not None and max_age is not None and min_age > max_age:
            raise serializers.ValidationError({'min_age': 'min_age must not exceed max_age.'})
        return attrs

    def to_query(self) -> PatientQuery:
        return PatientQuery(**self.validated_data)
