from rest_framework import generics, status
from rest_framework.response import Response

from afyatrack_backend.core.exceptions import InvalidInput
from afyatrack_backend.core.permissions import IsAdmin, RecordAccessPermission, identity_for_request
from afyatrack_backend.core.utils import log_patient_action
from afyatrack_backend.patients import services
from afyatrack_backend.patients.models import Patient
from afyatrack_backend.patients.serializers import (
    PatientListSerializer,
    PatientQuerySerializer,
    PatientReadSerializer,
    PatientWriteSerializer,
)
from afyatrack_backend.visits.serializers import VisitListSerializer


class PatientListCreateView(generics.ListCreateAPIView):
    """List patients visible to the caller or create a new patient."""

    permission_classes = [RecordAccessPermission]

    def get_queryset(self):
        query = PatientQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return services.list_patients(identity_for_request(self.request), query.to_query())

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return PatientWriteSerializer
        return PatientListSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        patient = services.create_patient(identity_for_request(request), serializer.validated_data)
        log_patient_action(request.user, 'patient_created', patient_id=patient.pk)
        return Response(PatientReadSerializer(patient).data, status=status.HTTP_201_CREATED)


class PatientDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Retrieve, update or deactivate a patient.

    GET    ?include_stats=true adds visit count, last visit and recent visits
    DELETE is a soft delete (is_active=False), admins only
    """

    permission_classes = [RecordAccessPermission]
    queryset = Patient.objects.filter(is_active=True).select_related('facility', 'created_by')

    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [RecordAccessPermission(), IsAdmin()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return PatientWriteSerializer
        return PatientReadSerializer

    def retrieve(self, request, *args, **kwargs):
        patient = self.get_object()
        data = PatientReadSerializer(patient).data

        if request.query_params.get('include_stats', '').lower() in ('1', 'true', 'yes'):
            summary = services.patient_summary(patient)
            data['visit_count'] = summary['visit_count']
            data['last_visit_date'] = summary['last_visit_date']
            data['recent_visits'] = VisitListSerializer(summary['recent_visits'], many=True).data

        log_patient_action(request.user, 'patient_viewed', patient_id=patient.pk)
        return Response(data)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        patient = self.get_object()
        serializer = self.get_serializer(patient, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        patient = services.update_patient(patient, serializer.validated_data)
        log_patient_action(
            request.user,
            'patient_updated',
            patient_id=patient.pk,
            meta={'fields': sorted(serializer.validated_data)},
        )
        return Response(PatientReadSerializer(patient).data)

    def perform_destroy(self, instance):
        services.deactivate_patient(instance)
        log_patient_action(self.request.user, 'patient_deactivated', patient_id=instance.pk)


class PatientVisitsView(generics.ListAPIView):
    """Visit history of one patient, newest first."""

    permission_classes = [RecordAccessPermission]
    serializer_class = VisitListSerializer

    def get_queryset(self):
        return services.patient_visits(identity_for_request(self.request), self.kwargs['pk'])


class PatientSearchView(generics.GenericAPIView):
    """GET /api/patients/search/?q=<term>&limit=<n> (unpaginated, max 50)."""

    permission_classes = [RecordAccessPermission]
    serializer_class = PatientListSerializer

    def get(self, request, *args, **kwargs):
        try:
            limit = int(request.query_params.get('limit', 10))
        except (TypeError, ValueError):
            limit = 10
        patients = services.search_patients(
            identity_for_request(request),
            request.query_params.get('q', ''),
            limit=limit,
        )
        return Response({'results': self.get_serializer(patients, many=True).data})


class PatientStatisticsView(generics.GenericAPIView):
    """GET /api/patients/statistics/?facility_id=<id>"""

    permission_classes = [RecordAccessPermission]

    def get(self, request, *args, **kwargs):
        facility_id = request.query_params.get('facility_id')
        try:
            facility_id = int(facility_id) if facility_id else None
        except ValueError:
            raise InvalidInput('facility_id must be an integer.')
        stats = services.patient_statistics(identity_for_request(request), facility_id=facility_id)
        return Response(stats)
