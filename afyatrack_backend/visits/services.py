"""Visit record services.

Scope of a caller: visits on the patients they may read (see
``patients.services.visible_patients``), which covers the visits they
conducted. A visit is created by the requesting doctor on a patient they may
read; the status moves only out of ``active``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from django.db.models import Avg, Count
from django.utils import timezone

from afyatrack_backend.core.exceptions import Conflict, Forbidden
from afyatrack_backend.core.permissions import can_access_records, can_modify_records, is_admin
from afyatrack_backend.patients.services import get_patient, visible_patients

from .models import Visit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitQuery:
    """Allowed list filters."""

    patient_id: int | None = None
    status: str | None = None
    visit_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None


def _start_of_day(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, time.min))


def visible_visits(identity):
    if identity is None or not can_access_records(identity):
        return Visit.objects.none()
    if is_admin(identity):
        return Visit.objects.all()
    return Visit.objects.filter(patient__in=visible_patients(identity))


def list_visits(identity, query: VisitQuery):
    qs = visible_visits(identity).select_related('patient', 'doctor')

    if query.patient_id is not None:
        qs = qs.filter(patient_id=query.patient_id)
    if query.status:
        qs = qs.filter(status=query.status)
    if query.visit_type:
        qs = qs.filter(visit_type=query.visit_type)
    if query.start_date is not None:
        qs = qs.filter(visit_date__gte=_start_of_day(query.start_date))
    if query.end_date is not None:
        qs = qs.filter(visit_date__lt=_start_of_day(query.end_date + timedelta(days=1)))

    return qs.order_by('-visit_date', '-id')


def create_visit(identity, data: dict) -> Visit:
    """Open a visit on ``data['patient_id']`` conducted by the caller."""
    if not can_modify_records(identity):
        raise Forbidden('Permission to modify patient records not granted.')

    data = dict(data)
    patient = get_patient(identity, data.pop('patient_id'))

    visit = Visit.objects.create(
        patient=patient,
        doctor_id=identity.user_id,
        status=Visit.Status.ACTIVE,
        **data,
    )
    logger.info('Visit created (visit_id=%s, patient_id=%s)', visit.pk, patient.pk)
    return visit


def ensure_editable(visit: Visit) -> None:
    if visit.status == Visit.Status.CANCELLED:
        raise Conflict('Cancelled visits cannot be edited.', code='visit_cancelled')


def update_visit(visit: Visit, data: dict) -> Visit:
    ensure_editable(visit)

    for attr, value in data.items():
        setattr(visit, attr, value)
    visit.save()
    return visit


def _transition(visit: Visit, status: str) -> Visit:
    if visit.status != Visit.Status.ACTIVE:
        raise Conflict(
            f'Visit is already {visit.status}.',
            code='invalid_status_transition',
            status=visit.status,
        )
    visit.status = status
    visit.save(update_fields=['status', 'updated_at'])
    logger.info('Visit %s (visit_id=%s)', status, visit.pk)
    return visit


def cancel_visit(visit: Visit) -> Visit:
    return _transition(visit, Visit.Status.CANCELLED)


def complete_visit(visit: Visit) -> Visit:
    return _transition(visit, Visit.Status.COMPLETED)


def apply_soap_note(visit: Visit, note) -> Visit:
    """Write a drafted note onto the visit (overwrites the four sections)."""
    ensure_editable(visit)

    visit.soap_subjective = note.subjective
    visit.soap_objective = note.objective
    visit.soap_assessment = note.assessment
    visit.soap_plan = note.plan
    visit.save(update_fields=[
        'soap_subjective',
        'soap_objective',
        'soap_assessment',
        'soap_plan',
        'transcript',
        'updated_at',
    ])
    return visit


def visit_statistics(identity, today=None) -> dict:
    today = today or timezone.localdate()
    qs = visible_visits(identity)

    start_today = _start_of_day(today)
    # Weeks start on Sunday.
    start_week = _start_of_day(today - timedelta(days=(today.weekday() + 1) % 7))
    start_month = _start_of_day(today.replace(day=1))

    by_type = {choice: 0 for choice in Visit.VisitType.values}
    for row in qs.order_by().values('visit_type').annotate(count=Count('id')):
        by_type[row['visit_type']] = row['count']

    by_status = {choice: 0 for choice in Visit.Status.values}
    for row in qs.order_by().values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    average = qs.filter(duration_minutes__isnull=False).aggregate(avg=Avg('duration_minutes'))['avg']

    return {
        'total': qs.count(),
        'today': qs.filter(visit_date__gte=start_today, visit_date__lt=start_today + timedelta(days=1)).count(),
        'this_week': qs.filter(visit_date__gte=start_week).count(),
        'this_month': qs.filter(visit_date__gte=start_month).count(),
        'by_type': by_type,
        'by_status': by_status,
        'average_duration': round(average, 1) if average is not None else None,
    }
