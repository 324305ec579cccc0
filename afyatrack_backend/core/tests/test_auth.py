"""Tests for Authentication endpoints.

Tests cover:
- Register / Login (POST /api/auth/register/, /api/auth/login/)
- Refresh rotation (POST /api/auth/refresh/)
- Logout / logout everywhere
- Me, change password, verify
- Bearer authentication on protected endpoints
- Login throttling
- Client address recording behind proxies
- Facilities
- URLconf import in a fresh interpreter
"""

from __future__ import annotations

import os
import subprocess
import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from django.conf import settings
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from rest_framework import status
from rest_framework.test import APIClient

from afyatrack_backend.core import tokens
from afyatrack_backend.core.models import Facility, RefreshToken, User
from afyatrack_backend.core.seeders import ADMIN_EMAIL, ADMIN_PASSWORD, seed_core
from afyatrack_backend.core.throttling import AuthRateThrottle


class AuthenticationTest(TestCase):
    """Tests for /api/auth/ endpoints."""

    databases = {"default"}

    def setUp(self):
        cache.clear()

        self.facility = Facility.objects.create(name="Kenyatta National Hospital")
        self.doctor = User.objects.create_user(
            email="doctor_auth@example.com",
            password="SecurePass123!",
            role=User.Role.DOCTOR,
            first_name="Brian",
            last_name="Otieno",
            facility=self.facility,
        )
        self.inactive_user = User.objects.create_user(
            email="inactive_auth@example.com",
            password="SecurePass123!",
            role=User.Role.DOCTOR,
            is_active=False,
        )

        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"

    def _login(self, email="doctor_auth@example.com", password="SecurePass123!"):
        return self.client.post(
            "/api/auth/login/",
            {"email": email, "password": password},
            format="json",
        )

    def _bearer(self, access_token) -> APIClient:
        client = APIClient()
        client.defaults["HTTP_HOST"] = "localhost"
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access_token}")
        return client

    # ========== REGISTER TESTS ==========

    def test_register_returns_201_and_token_pair(self):
        """Registration creates the user and returns a usable pair."""
        response = self.client.post(
            "/api/auth/register/",
            {
                "email": "Nurse.New@Example.com",
                "password": "Kilimanjaro#2024",
                "first_name": "Mercy",
                "last_name": "Achieng",
                "role": "nurse",
                "facility_id": self.facility.pk,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn("access_token", response.data)
        self.assertIn("refresh_token", response.data)
        self.assertIn("expires_at", response.data)
        self.assertEqual(response.data["user"]["email"], "nurse.new@example.com")
        self.assertEqual(response.data["user"]["role"], "nurse")
        self.assertEqual(response.data["user"]["facility"]["id"], self.facility.pk)

    def test_register_admin_role_rejected(self):
        """Admin accounts cannot be self-registered."""
        response = self.client.post(
            "/api/auth/register/",
            {
                "email": "wannabe@example.com",
                "password": "Kilimanjaro#2024",
                "first_name": "Wanna",
                "last_name": "Admin",
                "role": "admin",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email="wannabe@example.com").exists())

    def test_register_duplicate_email_returns_409(self):
        response = self.client.post(
            "/api/auth/register/",
            {
                "email": "doctor_auth@example.com",
                "password": "Kilimanjaro#2024",
                "first_name": "Dup",
                "last_name": "Licate",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")

    # ========== LOGIN TESTS ==========

    def test_login_success_returns_tokens_and_user(self):
        """Valid credentials return a pair whose access token verifies to the user."""
        response = self._login()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["user"]["id"], self.doctor.pk)
        self.assertEqual(response.data["user"]["role"], "doctor")
        identity = tokens.verify_access_token(response.data["access_token"])
        self.assertEqual(identity.user_id, self.doctor.pk)
        self.assertTrue(RefreshToken.objects.get(token=response.data["refresh_token"]).is_active)

    def test_login_email_is_case_insensitive(self):
        response = self._login(email="Doctor_Auth@Example.com")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_wrong_password_returns_401(self):
        """Wrong password returns 401 with invalid_credentials."""
        response = self._login(password="WrongPassword!")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_credentials")
        self.assertIn("WWW-Authenticate", response)

    def test_login_unknown_email_returns_401(self):
        response = self._login(email="nobody@example.com")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_credentials")

    def test_login_inactive_user_returns_401(self):
        """Inactive account is indistinguishable from bad credentials."""
        response = self._login(email="inactive_auth@example.com")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_credentials")

    def test_login_missing_fields_returns_400(self):
        response = self.client.post("/api/auth/login/", {"email": "doctor_auth@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", response.data)

    def test_login_ignores_stale_bearer_header(self):
        """Login works even when the client still sends an old, invalid token."""
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self._login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_checks_password_once(self):
        check_password = User.check_password
        with patch.object(User, "check_password", autospec=True, side_effect=check_password) as checked:
            response = self._login()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(checked.call_count, 1)

    # ========== CLIENT ADDRESS ==========

    def test_forwarded_header_ignored_without_trusted_proxy(self):
        """X-Forwarded-For is not trusted by default; REMOTE_ADDR is recorded."""
        response = self.client.post(
            "/api/auth/login/",
            {"email": "doctor_auth@example.com", "password": "SecurePass123!"},
            format="json",
            REMOTE_ADDR="10.9.8.7",
            HTTP_X_FORWARDED_FOR="203.0.113.5",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = RefreshToken.objects.get(token=response.data["refresh_token"])
        self.assertEqual(row.created_by_ip, "10.9.8.7")

    def test_forwarded_header_used_behind_trusted_proxy(self):
        with self.settings(REST_FRAMEWORK={**settings.REST_FRAMEWORK, "NUM_PROXIES": 1}):
            response = self.client.post(
                "/api/auth/login/",
                {"email": "doctor_auth@example.com", "password": "SecurePass123!"},
                format="json",
                REMOTE_ADDR="10.0.0.1",
                HTTP_X_FORWARDED_FOR="198.51.100.1, 203.0.113.5",
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = RefreshToken.objects.get(token=response.data["refresh_token"])
        self.assertEqual(row.created_by_ip, "203.0.113.5")

    def test_malformed_forwarded_address_not_recorded(self):
        """A forwarded value that is not an IP address is dropped, login still succeeds."""
        with self.settings(REST_FRAMEWORK={**settings.REST_FRAMEWORK, "NUM_PROXIES": 1}):
            response = self.client.post(
                "/api/auth/login/",
                {"email": "doctor_auth@example.com", "password": "SecurePass123!"},
                format="json",
                HTTP_X_FORWARDED_FOR="not-an-ip-address",
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = RefreshToken.objects.get(token=response.data["refresh_token"])
        self.assertIsNone(row.created_by_ip)

    # ========== REFRESH TESTS ==========

    def test_refresh_success_rotates_token(self):
        login = self._login()
        old_refresh = login.data["refresh_token"]

        response = self.client.post("/api/auth/refresh/", {"refresh_token": old_refresh}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotEqual(response.data["refresh_token"], old_refresh)
        self.assertTrue(RefreshToken.objects.get(token=old_refresh).is_revoked)

    def test_refresh_reused_token_returns_401(self):
        """A refresh token cannot be used twice."""
        old_refresh = self._login().data["refresh_token"]
        self.client.post("/api/auth/refresh/", {"refresh_token": old_refresh}, format="json")

        response = self.client.post("/api/auth/refresh/", {"refresh_token": old_refresh}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_refresh_token")

    def test_refresh_expired_token_returns_401(self):
        RefreshToken.objects.create(
            token="9" * 128,
            user=self.doctor,
            expires_at=timezone.now() - timedelta(hours=1),
        )
        response = self.client.post("/api/auth/refresh/", {"refresh_token": "9" * 128}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_refresh_token")

    def test_refresh_missing_token_returns_400(self):
        response = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # ========== LOGOUT TESTS ==========

    def test_logout_is_idempotent(self):
        refresh = self._login().data["refresh_token"]

        first = self.client.post("/api/auth/logout/", {"refresh_token": refresh}, format="json")
        second = self.client.post("/api/auth/logout/", {"refresh_token": refresh}, format="json")

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertTrue(RefreshToken.objects.get(token=refresh).is_revoked)

    def test_logout_unknown_token_returns_200(self):
        response = self.client.post("/api/auth/logout/", {"refresh_token": "unknown"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_logout_all_revokes_every_session(self):
        first = self._login().data
        self._login()

        client = self._bearer(first["access_token"])
        response = client.post("/api/auth/logout-all/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["revoked"], 2)
        self.assertFalse(RefreshToken.objects.filter(user=self.doctor, is_revoked=False).exists())

    def test_logout_all_requires_authentication(self):
        response = self.client.post("/api/auth/logout-all/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # ========== ME / PROFILE TESTS ==========

    def test_me_with_valid_token_returns_user(self):
        access = self._login().data["access_token"]

        response = self._bearer(access).get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "doctor_auth@example.com")
        self.assertEqual(response.data["name"], "Brian Otieno")
        self.assertNotIn("password", response.data)

    def test_me_without_token_returns_401(self):
        response = self.client.get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("WWW-Authenticate", response)

    def test_me_with_invalid_token_returns_401(self):
        response = self._bearer("invalid.token.here").get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "token_not_valid")

    def test_me_with_expired_token_returns_token_expired(self):
        token, _ = tokens.create_access_token(
            tokens.Identity.from_user(self.doctor),
            now=timezone.now() - timedelta(days=3),
        )

        response = self._bearer(token).get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["detail"].code, "token_expired")

    def test_token_of_deactivated_user_rejected(self):
        access = self._login().data["access_token"]
        self.doctor.is_active = False
        self.doctor.save(update_fields=["is_active"])

        response = self._bearer(access).get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_profile(self):
        access = self._login().data["access_token"]

        response = self._bearer(access).put(
            "/api/auth/me/",
            {"first_name": "Brian K.", "license_number": "KMPDC-55555", "role": "admin"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.first_name, "Brian K.")
        self.assertEqual(self.doctor.license_number, "KMPDC-55555")
        self.assertEqual(self.doctor.role, User.Role.DOCTOR)

    def test_change_password_revokes_sessions(self):
        login = self._login().data

        response = self._bearer(login["access_token"]).post(
            "/api/auth/change-password/",
            {"old_password": "SecurePass123!", "new_password": "Kilimanjaro#2024"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        refresh = self.client.post("/api/auth/refresh/", {"refresh_token": login["refresh_token"]}, format="json")
        self.assertEqual(refresh.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(self._login(password="Kilimanjaro#2024").status_code, status.HTTP_200_OK)

    def test_change_password_wrong_old_password(self):
        access = self._login().data["access_token"]

        response = self._bearer(access).post(
            "/api/auth/change-password/",
            {"old_password": "nope-nope", "new_password": "Kilimanjaro#2024"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_password")

    def test_verify_returns_identity(self):
        access = self._login().data["access_token"]

        response = self._bearer(access).get("/api/auth/verify/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["valid"])
        self.assertEqual(response.data["identity"]["user_id"], self.doctor.pk)
        self.assertEqual(response.data["identity"]["facility_id"], self.facility.pk)

    # ========== HEALTH ==========

    def test_health_endpoint_no_auth_required(self):
        response = self.client.get("/api/health/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"status": "ok"})

    # ========== THROTTLING ==========

    def test_login_is_throttled_per_client(self):
        """Repeated login attempts from one address are throttled (429)."""
        with patch.object(AuthRateThrottle, "THROTTLE_RATES", {"auth": "2/min"}):
            codes = [self._login(password="WrongPassword!").status_code for _ in range(3)]

        self.assertEqual(codes[:2], [status.HTTP_401_UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED])
        self.assertEqual(codes[2], status.HTTP_429_TOO_MANY_REQUESTS)

    def test_throttle_counts_addresses_separately(self):
        with patch.object(AuthRateThrottle, "THROTTLE_RATES", {"auth": "1/min"}):
            first = self.client.post(
                "/api/auth/login/",
                {"email": "doctor_auth@example.com", "password": "SecurePass123!"},
                format="json",
                REMOTE_ADDR="10.1.1.1",
            )
            second = self.client.post(
                "/api/auth/login/",
                {"email": "doctor_auth@example.com", "password": "SecurePass123!"},
                format="json",
                REMOTE_ADDR="10.2.2.2",
            )

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)


class SeededAdminSessionTest(TestCase):
    """Login as the seeded admin, use the API, log out, try to refresh."""

    databases = {"default"}

    def setUp(self):
        cache.clear()
        seed_core()
        self.client = APIClient()
        self.client.defaults["HTTP_HOST"] = "localhost"

    def test_access_token_outlives_logout_but_refresh_does_not(self):
        login = self.client.post(
            "/api/auth/login/",
            {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
            format="json",
        )
        self.assertEqual(login.status_code, status.HTTP_200_OK)
        access, refresh = login.data["access_token"], login.data["refresh_token"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        self.assertEqual(self.client.get("/api/patients/").status_code, status.HTTP_200_OK)

        logout = self.client.post("/api/auth/logout/", {"refresh_token": refresh}, format="json")
        self.assertEqual(logout.status_code, status.HTTP_200_OK)

        # Access tokens are not revoked server-side.
        self.assertEqual(tokens.verify_access_token(access).role, "admin")
        self.assertEqual(self.client.get("/api/auth/me/").status_code, status.HTTP_200_OK)

        self.client.credentials()
        response = self.client.post("/api/auth/refresh/", {"refresh_token": refresh}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "invalid_refresh_token")


class FacilityAPITest(TestCase):
    """Tests for /api/facilities/ endpoints."""

    databases = {"default"}

    def setUp(self):
        self.home = Facility.objects.create(name="Mbagathi Health Centre")
        self.other = Facility.objects.create(name="Kilifi Dispensary", type=Facility.FacilityType.DISPENSARY)
        self.closed = Facility.objects.create(name="Closed Clinic", is_active=False)

        self.admin = User.objects.create_user(email="admin_fac@example.com", password="x", role=User.Role.ADMIN)
        self.nurse = User.objects.create_user(
            email="nurse_fac@example.com",
            password="x",
            role=User.Role.NURSE,
            facility=self.home,
        )

    def _client_for(self, user: User) -> APIClient:
        client = APIClient()
        client.defaults["HTTP_HOST"] = "localhost"
        client.force_authenticate(user=user)
        return client

    def test_list_hides_inactive_for_staff(self):
        response = self._client_for(self.nurse).get("/api/facilities/")

        self.assertEqual(response.status_code, 200)
        names = [row["name"] for row in response.data["results"]]
        self.assertNotIn("Closed Clinic", names)
        self.assertEqual(response.data["total"], 2)

    def test_list_admin_sees_all(self):
        response = self._client_for(self.admin).get("/api/facilities/")
        self.assertEqual(response.data["total"], 3)

    def test_detail_own_facility(self):
        response = self._client_for(self.nurse).get(f"/api/facilities/{self.home.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["name"], "Mbagathi Health Centre")

    def test_detail_other_facility_forbidden(self):
        response = self._client_for(self.nurse).get(f"/api/facilities/{self.other.pk}/")
        self.assertEqual(response.status_code, 403)

    def test_detail_admin_any_facility(self):
        response = self._client_for(self.admin).get(f"/api/facilities/{self.other.pk}/")
        self.assertEqual(response.status_code, 200)


class UrlConfImportTest(SimpleTestCase):
    """The URLconf loads in a clean interpreter (no circular imports)."""

    def test_urlconf_resolves_in_fresh_process(self):
        code = (
            "import django; django.setup(); "
            "from django.urls import resolve; "
            "print(resolve('/api/auth/login/').func.view_class.__name__)"
        )
        env = {**os.environ, "DJANGO_SETTINGS_MODULE": "afyatrack_backend.settings_dev"}
        result = subprocess.run(
            [sys.executable, "-c", code],
            cwd=Path(__file__).resolve().parents[3],
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("LoginView", result.stdout)
