"""Patient record services.

Queries are built with the ORM from an explicit parameter object
(``PatientQuery``); filter values are always bound parameters. Listing and
search are scoped by the caller's identity with the same rule as
``core.permissions.can_view_patient``: admins see every patient, other
clinical roles see patients they created or treat and patients of their own
facility, receptionists see none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from django.apps import apps
from django.db.models import Count, Max, Q
from django.utils import timezone

from afyatrack_backend.core.exceptions import Conflict, Forbidden, NotFound
from afyatrack_backend.core.permissions import (
    can_access_records,
    can_modify_records,
    can_view_patient,
    is_admin,
)

from .models import Patient, age_on

logger = logging.getLogger(__name__)

RECENT_VISITS = 5


@dataclass(frozen=True)
class PatientQuery:
    """Allowed list filters. Anything else in the query string is ignored."""

    search: str = ''
    gender: str | None = None
    facility_id: int | None = None
    min_age: int | None = None
    max_age: int | None = None


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year.
        return today.replace(year=today.year - years, day=28)


def birth_date_bounds(min_age=None, max_age=None, today=None):
    """Translate age bounds into (born_on_or_after, born_on_or_before).

    ``min_age=N`` keeps patients who turned N on or before today;
    ``max_age=M`` keeps patients who have not yet turned M + 1.
    """
    today = today or timezone.localdate()
    born_on_or_before = _years_before(today, min_age) if min_age is not None else None
    born_after = _years_before(today, max_age + 1) if max_age is not None else None
    born_on_or_after = None
    if born_after is not None:
        born_on_or_after = date.fromordinal(born_after.toordinal() + 1)
    return born_on_or_after, born_on_or_before


# -----------------------------------------------------------------------------
# Scoping
# -----------------------------------------------------------------------------


def visible_patients(identity):
    """Patients the identity may read (active and inactive)."""
    if identity is None or not can_access_records(identity):
        return Patient.objects.none()
    if is_admin(identity):
        return Patient.objects.all()

    Visit = apps.get_model('visits', 'Visit')
    treated = Visit.objects.filter(doctor_id=identity.user_id).values('patient_id')
    scope = Q(created_by_id=identity.user_id) | Q(pk__in=treated)
    if identity.facility_id is not None:
        scope |= Q(facility_id=identity.facility_id)
    return Patient.objects.filter(scope)


def list_patients(identity, query: PatientQuery):
    qs = visible_patients(identity).filter(is_active=True).select_related('facility', 'created_by')

    if query.search:
        term = query.search.strip()
        qs = qs.filter(
            Q(first_name__icontains=term)
            | Q(last_name__icontains=term)
            | Q(nhif_number__icontains=term)
            | Q(national_id__icontains=term)
            | Q(phone__icontains=term)
        )
    if query.gender:
        qs = qs.filter(gender=query.gender)
    if query.facility_id is not None:
        qs = qs.filter(facility_id=query.facility_id)

    born_on_or_after, born_on_or_before = birth_date_bounds(query.min_age, query.max_age)
    if born_on_or_after is not None:
        qs = qs.filter(date_of_birth__gte=born_on_or_after)
    if born_on_or_before is not None:
        qs = qs.filter(date_of_birth__lte=born_on_or_before)

    return qs.order_by('-created_at', '-id')


def get_patient(identity, pk) -> Patient:
    """Active patient ``pk`` if the identity may read it.

    Raises NotFound for a missing or deactivated patient, Forbidden otherwise.
    """
    patient = (
        Patient.objects
        .select_related('facility', 'created_by')
        .filter(pk=pk, is_active=True)
        .first()
    )
    if patient is None:
        raise NotFound('Patient not found.')
    if not can_view_patient(identity, patient):
        raise Forbidden('Access to this patient not permitted.')
    return patient


def patient_summary(patient: Patient) -> dict:
    """Visit count, last visit date and the most recent visits."""
    Visit = apps.get_model('visits', 'Visit')
    visits = Visit.objects.filter(patient=patient)
    aggregates = visits.aggregate(visit_count=Count('id'), last_visit_date=Max('visit_date'))
    return {
        'visit_count': aggregates['visit_count'],
        'last_visit_date': aggregates['last_visit_date'],
        'recent_visits': list(
            visits.select_related('doctor').order_by('-visit_date', '-id')[:RECENT_VISITS]
        ),
    }


# -----------------------------------------------------------------------------
# Writes
# -----------------------------------------------------------------------------


def _check_unique(data: dict, exclude_pk=None):
    for field, label in (('national_id', 'national ID'), ('nhif_number', 'NHIF number')):
        value = data.get(field)
        if not value:
            continue
        qs = Patient.objects.filter(**{field: value})
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        if qs.exists():
            raise Conflict(f'Patient with this {label} already exists.', field=field)


def create_patient(identity, data: dict) -> Patient:
    if not can_modify_records(identity):
        raise Forbidden('Permission to modify patient records not granted.')

    data = dict(data)
    for field in ('national_id', 'nhif_number'):
        if not data.get(field):
            data[field] = None
    _check_unique(data)

    if 'facility' not in data and identity.facility_id is not None:
        data['facility_id'] = identity.facility_id

    patient = Patient.objects.create(created_by_id=identity.user_id, **data)
    logger.info('Patient created (patient_id=%s, user_id=%s)', patient.pk, identity.user_id)
    return patient


def update_patient(patient: Patient, data: dict) -> Patient:
    data = dict(data)
    for field in ('national_id', 'nhif_number'):
        if field in data and not data[field]:
            data[field] = None
    _check_unique(data, exclude_pk=patient.pk)

    for attr, value in data.items():
        setattr(patient, attr, value)
    patient.save()
    return patient


def deactivate_patient(patient: Patient) -> Patient:
    """Soft delete."""
    patient.is_active = False
    patient.save(update_fields=['is_active', 'updated_at'])
    logger.info('Patient deactivated (patient_id=%s)', patient.pk)
    return patient


# -----------------------------------------------------------------------------
# Reads beyond the list
# -----------------------------------------------------------------------------


def patient_visits(identity, pk):
    """Visit history of a patient, newest first."""
    patient = get_patient(identity, pk)
    Visit = apps.get_model('visits', 'Visit')
    return (
        Visit.objects
        .filter(patient=patient)
        .select_related('doctor', 'patient')
        .order_by('-visit_date', '-id')
    )


def search_patients(identity, term: str, limit: int = 10):
    """Quick search by name, NHIF number, national ID or phone."""
    term = (term or '').strip()
    if len(term) < 2:
        return []
    limit = max(1, min(int(limit), 50))
    return list(list_patients(identity, PatientQuery(search=term))[:limit])


def patient_statistics(identity, facility_id=None, today=None) -> dict:
    today = today or timezone.localdate()
    qs = visible_patients(identity).filter(is_active=True)
    if facility_id is not None:
        qs = qs.filter(facility_id=facility_id)

    month_start = timezone.make_aware(datetime.combine(today.replace(day=1), time.min))

    by_gender = {choice: 0 for choice in Patient.Gender.values}
    for row in qs.order_by().values('gender').annotate(count=Count('id')):
        by_gender[row['gender']] = row['count']

    births = list(qs.values_list('date_of_birth', flat=True))
    average_age = round(sum(age_on(dob, today) for dob in births) / len(births), 1) if births else None

    return {
        'total': len(births),
        'new_this_month': qs.filter(created_at__gte=month_start).count(),
        'by_gender': by_gender,
        'average_age': average_age,
    }

