"""Core App URLs - Authentication, Sessions, Facilities & Health.

Prefix: /api/
Routes:
    GET       /api/health/                - Health check (no auth)
    POST      /api/auth/register/         - Create account, issue token pair
    POST      /api/auth/login/            - Issue token pair
    POST      /api/auth/refresh/          - Rotate refresh token
    POST      /api/auth/logout/           - Revoke one refresh token
    POST      /api/auth/logout-all/       - Revoke every refresh token of the caller
    GET/PUT   /api/auth/me/               - Current user profile
    POST      /api/auth/change-password/  - Change password, end all sessions
    GET       /api/auth/verify/           - Identity of the presented access token
    GET       /api/facilities/            - Facility list
    GET       /api/facilities/<id>/       - Facility detail
"""

from django.urls import path

from afyatrack_backend.core.views import (
    health,
    ChangePasswordView,
    FacilityDetailView,
    FacilityListView,
    LoginView,
    LogoutAllView,
    LogoutView,
    MeView,
    RefreshView,
    RegisterView,
    VerifyView,
)

app_name = 'core'

urlpatterns = [
    # Health check
    path('health/', health, name='health'),

    # Authentication
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/refresh/', RefreshView.as_view(), name='refresh'),
    path('auth/logout/', LogoutView.as_view(), name='logout'),
    path('auth/logout-all/', LogoutAllView.as_view(), name='logout-all'),
    path('auth/me/', MeView.as_view(), name='me'),
    path('auth/change-password/', ChangePasswordView.as_view(), name='change-password'),
    path('auth/verify/', VerifyView.as_view(), name='verify'),

    # Facilities
    path('facilities/', FacilityListView.as_view(), name='facility-list'),
    path('facilities/<int:facility_id>/', FacilityDetailView.as_view(), name='facility-detail'),
]
