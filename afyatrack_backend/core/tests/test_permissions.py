"""Tests for the authorization predicates and permission classes.

Tests cover:
- Role predicates (admin, record read/write roles)
- Facility membership
- Ownership lookups (creator, treating doctor, failures deny)
- can_view_patient / can_edit_patient per role
- RecordAccessPermission / IsAdmin / FacilityAccessPermission
"""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from rest_framework.test import APIRequestFactory

from afyatrack_backend.core.models import Facility, User
from afyatrack_backend.core.permissions import (
    FacilityAccessPermission,
    IsAdmin,
    RecordAccessPermission,
    can_access_records,
    can_edit_patient,
    can_modify_records,
    can_view_patient,
    identity_for_request,
    is_admin,
    owns_or_treats,
    record_ownership,
    same_facility,
)
from afyatrack_backend.core.tokens import Identity
from afyatrack_backend.patients.models import Patient
from afyatrack_backend.visits.models import Visit


def _identity(user_id=1, role="doctor", facility_id=None):
    return Identity(user_id=user_id, email=f"user{user_id}@example.com", role=role, facility_id=facility_id)


class RolePredicateTest(TestCase):
    """Predicates that depend on the role alone."""

    databases = {"default"}

    def test_is_admin(self):
        self.assertTrue(is_admin(_identity(role="admin")))
        self.assertFalse(is_admin(_identity(role="doctor")))
        self.assertFalse(is_admin(None))

    def test_record_read_roles(self):
        self.assertTrue(can_access_records(_identity(role="doctor")))
        self.assertTrue(can_access_records(_identity(role="nurse")))
        self.assertTrue(can_access_records(_identity(role="admin")))
        self.assertFalse(can_access_records(_identity(role="receptionist")))

    def test_record_write_roles(self):
        self.assertTrue(can_modify_records(_identity(role="doctor")))
        self.assertTrue(can_modify_records(_identity(role="admin")))
        self.assertFalse(can_modify_records(_identity(role="nurse")))
        self.assertFalse(can_modify_records(_identity(role="receptionist")))

    def test_missing_or_unknown_role_denies(self):
        for identity in (None, _identity(role=""), _identity(role="janitor"), SimpleNamespace(user_id=1)):
            self.assertFalse(can_access_records(identity))
            self.assertFalse(can_modify_records(identity))
            self.assertFalse(is_admin(identity))

    def test_same_facility(self):
        nurse = _identity(role="nurse", facility_id=7)

        self.assertTrue(same_facility(nurse, 7))
        self.assertFalse(same_facility(nurse, 8))
        self.assertFalse(same_facility(nurse, None))
        self.assertFalse(same_facility(_identity(role="nurse"), 7))
        self.assertTrue(same_facility(_identity(role="admin"), 8))


class OwnershipTest(TestCase):
    """owns_or_treats / record_ownership and the composed patient checks."""

    databases = {"default"}

    def setUp(self):
        self.home = Facility.objects.create(name="Mbagathi Health Centre")
        self.other = Facility.objects.create(name="Kilifi Dispensary")

        self.creator = User.objects.create_user(
            email="creator_perm@example.com", password="x", role=User.Role.DOCTOR, facility=self.other
        )
        self.treating = User.objects.create_user(
            email="treating_perm@example.com", password="x", role=User.Role.DOCTOR, facility=self.other
        )
        self.unrelated = User.objects.create_user(
            email="unrelated_perm@example.com", password="x", role=User.Role.DOCTOR, facility=self.other
        )
        self.nurse_home = User.objects.create_user(
            email="nurse_home_perm@example.com", password="x", role=User.Role.NURSE, facility=self.home
        )
        self.receptionist = User.objects.create_user(
            email="reception_perm@example.com", password="x", role=User.Role.RECEPTIONIST, facility=self.home
        )

        self.patient = Patient.objects.create(
            first_name="Amani",
            last_name="Kamau",
            date_of_birth=date(1985, 3, 14),
            gender=Patient.Gender.FEMALE,
            facility=self.home,
            created_by=self.creator,
        )
        Visit.objects.create(patient=self.patient, doctor=self.treating, chief_complaint="Persistent cough")

    def _id(self, user):
        return Identity.from_user(user)

    # ========== OWNERSHIP ==========

    def test_creator_owns(self):
        self.assertTrue(owns_or_treats(self._id(self.creator), self.patient.pk))

    def test_treating_doctor_owns(self):
        self.assertTrue(owns_or_treats(self._id(self.treating), self.patient.pk))

    def test_unrelated_doctor_does_not_own(self):
        self.assertFalse(owns_or_treats(self._id(self.unrelated), self.patient.pk))

    def test_admin_owns_everything(self):
        self.assertTrue(owns_or_treats(_identity(user_id=999, role="admin"), self.patient.pk))

    def test_unknown_patient_denies(self):
        self.assertFalse(owns_or_treats(self._id(self.creator), 999999))
        self.assertFalse(owns_or_treats(self._id(self.creator), None))

    def test_ownership_lookup_uses_single_query(self):
        with self.assertNumQueries(1):
            owns_or_treats(self._id(self.treating), self.patient.pk)

    def test_lookup_failure_denies(self):
        """A database error during the ownership lookup denies access."""
        with patch("afyatrack_backend.core.permissions.apps.get_model") as get_model:
            get_model.return_value.objects.filter.side_effect = DatabaseError("connection lost")
            with self.assertLogs("afyatrack_backend.core.permissions", level="ERROR"):
                allowed = owns_or_treats(self._id(self.creator), self.patient.pk)

        self.assertFalse(allowed)

    def test_record_ownership(self):
        ownership = record_ownership(self.patient.pk)

        self.assertEqual(ownership.created_by, self.creator.pk)
        self.assertEqual(ownership.treating_doctor_ids, frozenset({self.treating.pk}))
        self.assertIsNone(record_ownership(999999))

    # ========== VIEW / EDIT ==========

    def test_can_view_patient_by_role(self):
        self.assertTrue(can_view_patient(self._id(self.creator), self.patient))
        self.assertTrue(can_view_patient(self._id(self.treating), self.patient))
        self.assertFalse(can_view_patient(self._id(self.unrelated), self.patient))
        # Same facility as the patient.
        self.assertTrue(can_view_patient(self._id(self.nurse_home), self.patient))
        self.assertFalse(can_view_patient(self._id(self.receptionist), self.patient))
        self.assertTrue(can_view_patient(_identity(user_id=999, role="admin"), self.patient))

    def test_can_edit_patient_by_role(self):
        self.assertTrue(can_edit_patient(self._id(self.creator), self.patient))
        self.assertTrue(can_edit_patient(self._id(self.treating), self.patient))
        self.assertFalse(can_edit_patient(self._id(self.unrelated), self.patient))
        self.assertFalse(can_edit_patient(self._id(self.nurse_home), self.patient))
        self.assertFalse(can_edit_patient(self._id(self.receptionist), self.patient))
        self.assertTrue(can_edit_patient(_identity(user_id=999, role="admin"), self.patient))

    def test_facility_member_doctor_can_view_not_edit(self):
        doctor_home = User.objects.create_user(
            email="doctor_home_perm@example.com", password="x", role=User.Role.DOCTOR, facility=self.home
        )

        self.assertTrue(can_view_patient(self._id(doctor_home), self.patient))
        self.assertFalse(can_edit_patient(self._id(doctor_home), self.patient))

    def test_reassignment_is_seen_immediately(self):
        """Ownership is looked up on every call."""
        identity = self._id(self.unrelated)
        self.assertFalse(owns_or_treats(identity, self.patient.pk))

        Visit.objects.create(patient=self.patient, doctor=self.unrelated, chief_complaint="Follow-up review")

        self.assertTrue(owns_or_treats(identity, self.patient.pk))


class PermissionClassTest(TestCase):
    """DRF permission classes on top of the predicates."""

    databases = {"default"}

    def setUp(self):
        self.factory = APIRequestFactory()
        self.permission = RecordAccessPermission()

    def _request(self, method, identity):
        request = getattr(self.factory, method)("/api/patients/")
        request.auth = identity
        request.user = SimpleNamespace(is_authenticated=identity is not None, role=getattr(identity, "role", None))
        return request

    def test_identity_for_request_prefers_token_identity(self):
        identity = _identity(role="nurse")
        self.assertIs(identity_for_request(self._request("get", identity)), identity)

    def test_identity_for_request_anonymous(self):
        request = self.factory.get("/api/patients/")
        request.auth = None
        request.user = SimpleNamespace(is_authenticated=False)

        self.assertIsNone(identity_for_request(request))

    def test_read_allowed_for_clinical_roles(self):
        for role in ("doctor", "nurse", "admin"):
            self.assertTrue(self.permission.has_permission(self._request("get", _identity(role=role)), None))
        self.assertFalse(self.permission.has_permission(self._request("get", _identity(role="receptionist")), None))

    def test_write_limited_to_doctor_and_admin(self):
        self.assertTrue(self.permission.has_permission(self._request("post", _identity(role="doctor")), None))
        self.assertTrue(self.permission.has_permission(self._request("post", _identity(role="admin")), None))
        self.assertFalse(self.permission.has_permission(self._request("post", _identity(role="nurse")), None))

    def test_anonymous_denied(self):
        request = self.factory.get("/api/patients/")
        request.auth = None
        request.user = SimpleNamespace(is_authenticated=False)

        self.assertFalse(self.permission.has_permission(request, None))

    def test_is_admin_permission(self):
        permission = IsAdmin()

        self.assertTrue(permission.has_permission(self._request("delete", _identity(role="admin")), None))
        self.assertFalse(permission.has_permission(self._request("delete", _identity(role="doctor")), None))
        self.assertFalse(permission.has_permission(self._request("delete", None), None))

    def test_facility_permission(self):
        permission = FacilityAccessPermission()
        view = SimpleNamespace(kwargs={"facility_id": "7"})

        self.assertTrue(permission.has_permission(self._request("get", _identity(role="nurse", facility_id=7)), view))
        self.assertFalse(permission.has_permission(self._request("get", _identity(role="nurse", facility_id=8)), view))
        self.assertTrue(permission.has_permission(self._request("get", _identity(role="admin")), view))
        self.assertFalse(
            permission.has_permission(
                self._request("get", _identity(role="nurse", facility_id=7)),
                SimpleNamespace(kwargs={}),
            )
        )
