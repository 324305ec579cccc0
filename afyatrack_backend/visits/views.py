from rest_framework import generics, status
from rest_framework.response import Response

from afyatrack_backend.core.permissions import RecordAccessPermission, identity_for_request
from afyatrack_backend.core.utils import log_patient_action
from afyatrack_backend.visits import drafting, services
from afyatrack_backend.visits.models import Visit
from afyatrack_backend.visits.serializers import (
    DraftNoteSerializer,
    VisitListSerializer,
    VisitQuerySerializer,
    VisitReadSerializer,
    VisitWriteSerializer,
)


class VisitListCreateView(generics.ListCreateAPIView):
    """List visits visible to the caller or open a new visit."""

    permission_classes = [RecordAccessPermission]

    def get_queryset(self):
        query = VisitQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return services.list_visits(identity_for_request(self.request), query.to_query())

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return VisitWriteSerializer
        return VisitListSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        visit = services.create_visit(identity_for_request(request), serializer.validated_data)
        log_patient_action(
            request.user,
            'visit_created',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk},
        )
        return Response(VisitReadSerializer(visit).data, status=status.HTTP_201_CREATED)


class VisitDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Retrieve, update or cancel a visit (DELETE cancels, nothing is removed)."""

    permission_classes = [RecordAccessPermission]
    queryset = Visit.objects.select_related('patient', 'doctor')

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return VisitWriteSerializer
        return VisitReadSerializer

    def retrieve(self, request, *args, **kwargs):
        visit = self.get_object()
        log_patient_action(
            request.user,
            'visit_viewed',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk},
        )
        return Response(VisitReadSerializer(visit).data)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        visit = self.get_object()
        serializer = self.get_serializer(visit, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        visit = services.update_visit(visit, serializer.validated_data)
        log_patient_action(
            request.user,
            'visit_updated',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk, 'fields': sorted(serializer.validated_data)},
        )
        return Response(VisitReadSerializer(visit).data)

    def destroy(self, request, *args, **kwargs):
        visit = services.cancel_visit(self.get_object())
        log_patient_action(
            request.user,
            'visit_cancelled',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk},
        )
        return Response(VisitReadSerializer(visit).data)


class VisitCompleteView(generics.GenericAPIView):
    """POST /api/visits/<pk>/complete/"""

    permission_classes = [RecordAccessPermission]
    queryset = Visit.objects.select_related('patient', 'doctor')

    def post(self, request, *args, **kwargs):
        visit = services.complete_visit(self.get_object())
        log_patient_action(
            request.user,
            'visit_completed',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk},
        )
        return Response(VisitReadSerializer(visit).data)


class VisitDraftNoteView(generics.GenericAPIView):
    """POST /api/visits/<pk>/draft-note/

    Drafts the SOAP note from ``transcript`` in the body, or from the
    transcript stored on the visit, and writes it onto the visit.
    """

    permission_classes = [RecordAccessPermission]
    queryset = Visit.objects.select_related('patient', 'doctor')

    def post(self, request, *args, **kwargs):
        visit = self.get_object()
        serializer = DraftNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.ensure_editable(visit)
        transcript = serializer.validated_data.get('transcript') or visit.transcript
        note = drafting.draft_soap_note(transcript)

        visit.transcript = transcript
        visit = services.apply_soap_note(visit, note)
        log_patient_action(
            request.user,
            'visit_note_drafted',
            patient_id=visit.patient_id,
            meta={'visit_id': visit.pk},
        )
        return Response({'soap_note': note.to_dict(), 'visit': VisitReadSerializer(visit).data})


class VisitStatisticsView(generics.GenericAPIView):
    """GET /api/visits/statistics/"""

    permission_classes = [RecordAccessPermission]

    def get(self, request, *args, **kwargs):
        return Response(services.visit_statistics(identity_for_request(request)))
