"""Authorization predicates and the DRF permission classes built on them.

Every predicate takes the verified ``Identity`` of the caller and fails
closed: a missing identity or role, an absent row or a failed lookup all
deny. Ownership is looked up on every call; nothing is cached between
requests because patient-to-doctor assignment changes over time.

Roles:
- admin: everything, bypasses ownership and facility checks
- doctor: read + write on patients they created or treat
- nurse: read-only on patients they created/treat or at their facility
- receptionist: no access to clinical records
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.apps import apps
from django.db import DatabaseError
from django.db.models import Q

from rest_framework.permissions import BasePermission, SAFE_METHODS

from .tokens import Identity

logger = logging.getLogger(__name__)

RECORD_READ_ROLES = frozenset({'doctor', 'nurse', 'admin'})
RECORD_WRITE_ROLES = frozenset({'doctor', 'admin'})


@dataclass(frozen=True)
class RecordOwnership:
    """Who created a patient record and which doctors have seen the patient."""

    created_by: int | None
    treating_doctor_ids: frozenset = field(default_factory=frozenset)


def _role(identity) -> str | None:
    return getattr(identity, 'role', None) or None


# -----------------------------------------------------------------------------
# Predicates
# -----------------------------------------------------------------------------


def is_admin(identity) -> bool:
    return _role(identity) == 'admin'


def can_access_records(identity) -> bool:
    return _role(identity) in RECORD_READ_ROLES


def can_modify_records(identity) -> bool:
    return _role(identity) in RECORD_WRITE_ROLES


def same_facility(identity, facility_id) -> bool:
    if is_admin(identity):
        return True
    own_facility = getattr(identity, 'facility_id', None)
    if own_facility is None or facility_id is None:
        return False
    return own_facility == facility_id


def owns_or_treats(identity, patient_id) -> bool:
    """True if the caller created the patient or has a visit with them.

    One existence query. Lookup errors deny.
    """
    if is_admin(identity):
        return True

    user_id = getattr(identity, 'user_id', None)
    if user_id is None or patient_id is None or not _role(identity):
        return False

    Patient = apps.get_model('patients', 'Patient')
    try:
        return (
            Patient.objects
            .filter(pk=patient_id)
            .filter(Q(created_by_id=user_id) | Q(visits__doctor_id=user_id))
            .exists()
        )
    except (DatabaseError, ValueError, TypeError):
        logger.exception('Ownership lookup failed (patient_id=%s, user_id=%s)', patient_id, user_id)
        return False


def record_ownership(patient_id) -> RecordOwnership | None:
    """Creator and treating doctors of a patient, or None if it does not exist."""
    Patient = apps.get_model('patients', 'Patient')
    Visit = apps.get_model('visits', 'Visit')

    row = Patient.objects.filter(pk=patient_id).values('created_by_id').first()
    if row is None:
        return None

    doctor_ids = (
        Visit.objects
        .filter(patient_id=patient_id)
        .values_list('doctor_id', flat=True)
        .distinct()
    )
    return RecordOwnership(created_by=row['created_by_id'], treating_doctor_ids=frozenset(doctor_ids))


def can_view_patient(identity, patient) -> bool:
    if not can_access_records(identity):
        return False
    if owns_or_treats(identity, patient.pk):
        return True
    return same_facility(identity, patient.facility_id)


def can_edit_patient(identity, patient) -> bool:
    if not can_modify_records(identity):
        return False
    return owns_or_treats(identity, patient.pk)


def identity_for_request(request) -> Identity | None:
    """The verified identity of the request, if any."""
    auth = getattr(request, 'auth', None)
    if isinstance(auth, Identity):
        return auth

    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated and getattr(user, 'role', None):
        return Identity.from_user(user)
    return None


# -----------------------------------------------------------------------------
# DRF permission classes
# -----------------------------------------------------------------------------


class RecordAccessPermission(BasePermission):
    """RBAC for clinical records (patients, visits).

    - GET/HEAD/OPTIONS: doctor, nurse, admin
    - writes: doctor, admin
    - object level: view/edit rules of the owning patient
    """

    message = 'Access to patient records not permitted.'

    def has_permission(self, request, view):
        identity = identity_for_request(request)
        if identity is None:
            return False

        if request.method in SAFE_METHODS:
            return can_access_records(identity)

        if not can_modify_records(identity):
            self.message = 'Permission to modify patient records not granted.'
            return False
        return True

    def has_object_permission(self, request, view, obj):
        identity = identity_for_request(request)
        if identity is None:
            return False

        patient = getattr(obj, 'patient', obj)
        if request.method in SAFE_METHODS:
            return can_view_patient(identity, patient)
        return can_edit_patient(identity, patient)


class IsAdmin(BasePermission):
    """Permission: user must have admin role."""

    message = 'Administrator privileges required.'

    def has_permission(self, request, view):
        return is_admin(identity_for_request(request))


class FacilityAccessPermission(BasePermission):
    """Caller must belong to the facility in the URL (admins pass)."""

    message = 'Access to this facility not permitted.'

    def has_permission(self, request, view):
        identity = identity_for_request(request)
        if identity is None:
            return False

        try:
            facility_id = int(view.kwargs['facility_id'])
        except (KeyError, TypeError, ValueError):
            return False
        return same_facility(identity, facility_id)
