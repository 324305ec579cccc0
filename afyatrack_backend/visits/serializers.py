from rest_framework import serializers

from afyatrack_backend.visits.models import Visit
from afyatrack_backend.visits.services import VisitQuery


def _user_display(user):
    if user is None:
        return None
    return user.get_full_name() or user.email


class VisitListSerializer(serializers.ModelSerializer):
    """Compact visit row for lists and patient history."""

    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = Visit
        fields = [
            'id',
            'patient',
            'patient_name',
            'doctor',
            'doctor_name',
            'visit_date',
            'visit_type',
            'chief_complaint',
            'status',
            'duration_minutes',
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj):
        return _user_display(obj.doctor)


class VisitReadSerializer(serializers.ModelSerializer):
    """Full visit including the SOAP note."""

    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    doctor_name = serializers.SerializerMethodField()
    has_soap_note = serializers.BooleanField(read_only=True)

    class Meta:
        model = Visit
        fields = [
            'id',
            'patient',
            'patient_name',
            'doctor',
            'doctor_name',
            'visit_date',
            'visit_type',
            'chief_complaint',
            'current_illness',
            'medical_history',
            'physical_exam',
            'soap_subjective',
            'soap_objective',
            'soap_assessment',
            'soap_plan',
            'has_soap_note',
            'recommendations',
            'vital_signs',
            'prescriptions',
            'lab_orders',
            'lab_results',
            'transcript',
            'duration_minutes',
            'next_appointment',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj):
        return _user_display(obj.doctor)


class VisitWriteSerializer(serializers.ModelSerializer):
    """Create/update. ``patient_id`` is required on create and ignored on update."""

    patient_id = serializers.IntegerField(min_value=1, write_only=True)

    class Meta:
        model = Visit
        fields = [
            'patient_id',
            'visit_date',
            'visit_type',
            'chief_complaint',
            'current_illness',
            'medical_history',
            'physical_exam',
            'soap_subjective',
            'soap_objective',
            'soap_assessment',
            'soap_plan',
            'recommendations',
            'vital_signs',
            'prescriptions',
            'lab_orders',
            'lab_results',
            'transcript',
            'duration_minutes',
            'next_appointment',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance is not None:
            self.fields.pop('patient_id')

    def validate_chief_complaint(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError('Chief complaint must be at least 3 characters.')
        return value

    def validate_recommendations(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Expected a list.')
        return value

    def validate_prescriptions(self, value):
        if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
            raise serializers.ValidationError('Expected a list of objects.')
        return value

    def validate_vital_signs(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Expected an object.')
        return value

    def validate_duration_minutes(self, value):
        if value is not None and not 1 <= value <= 480:
            raise serializers.ValidationError('Duration must be between 1 and 480 minutes.')
        return value


class VisitQuerySerializer(serializers.Serializer):
    """Query-string filters for GET /api/visits/."""

    patient_id = serializers.IntegerField(required=False, min_value=1)
    status = serializers.ChoiceField(choices=Visit.Status.choices, required=False)
    visit_type = serializers.ChoiceField(choices=Visit.VisitType.choices, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError({'start_date': 'start_date must not be after end_date.'})
        return attrs

    def to_query(self) -> VisitQuery:
        return VisitQuery(**self.validated_data)


class DraftNoteSerializer(serializers.Serializer):
    """Body of POST /api/visits/<id>/draft-note/ (falls back to the stored transcript)."""

    transcript = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
