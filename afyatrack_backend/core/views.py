"""Core app views.

Contains:
- health: Health check endpoint
- RegisterView / LoginView: issue an access + refresh token pair
- RefreshView: rotate a refresh token
- LogoutView / LogoutAllView: revoke one / every refresh token
- MeView: current user profile (read / update)
- ChangePasswordView: password change, ends every session
- VerifyView: echo the verified token identity
- FacilityListView / FacilityDetailView
"""

import logging

from django.db import connection
from django.http import JsonResponse

from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from afyatrack_backend.core import tokens
from afyatrack_backend.core.models import Facility
from afyatrack_backend.core.permissions import (
    FacilityAccessPermission,
    identity_for_request,
    is_admin,
)
from afyatrack_backend.core.serializers import (
    FacilitySerializer,
    LoginSerializer,
    PasswordChangeSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    UserProfileUpdateSerializer,
    UserSerializer,
    token_response,
)
from afyatrack_backend.core.throttling import AuthRateThrottle
from afyatrack_backend.core.utils import client_address

logger = logging.getLogger(__name__)


def health(request):
    """Health check endpoint - no authentication required."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1;')
    except Exception:
        logger.exception('Health check database query failed')
        return JsonResponse({'status': 'error'}, status=503)

    return JsonResponse({'status': 'ok'})


class RegisterView(APIView):
    """Create an account and issue its first token pair.

    POST /api/auth/register/
    Body: {"email", "password", "first_name", "last_name", "role"?, "license_number"?, "facility_id"?}
    Returns: 201 {"access_token", "refresh_token", "expires_at", "user"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]
    throttle_scope = 'auth'

    def post(self, request, *args, **kwargs):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, pair = tokens.register(
            **serializer.validated_data,
            client_address=client_address(request),
        )
        return Response(token_response(user, pair), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """Obtain an access and refresh token pair.

    POST /api/auth/login/
    Body: {"email": "...", "password": "..."}
    Returns: {"access_token", "refresh_token", "expires_at", "user"}
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]
    throttle_scope = 'auth'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, pair = tokens.login(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
            client_address=client_address(request),
        )
        return Response(token_response(user, pair), status=status.HTTP_200_OK)


class RefreshView(APIView):
    """Rotate a refresh token.

    POST /api/auth/refresh/
    Body: {"refresh_token": "..."}
    Returns: a new pair; the presented refresh token is revoked.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]
    throttle_scope = 'auth'

    def post(self, request, *args, **kwargs):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, pair = tokens.rotate_refresh_token(
            serializer.validated_data['refresh_token'],
            client_address=client_address(request),
        )
        return Response(token_response(user, pair), status=status.HTTP_200_OK)


class LogoutView(APIView):
    """Revoke one refresh token. Idempotent.

    POST /api/auth/logout/
    Body: {"refresh_token": "..."}
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tokens.revoke(
            serializer.validated_data['refresh_token'],
            client_address=client_address(request),
        )
        return Response({'detail': 'Logged out successfully.'}, status=status.HTTP_200_OK)


class LogoutAllView(APIView):
    """POST /api/auth/logout-all/ - revoke every session of the caller."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        revoked = tokens.revoke_all(request.user, client_address=client_address(request))
        return Response(
            {'detail': 'Logged out from all devices.', 'revoked': revoked},
            status=status.HTTP_200_OK,
        )


class MeView(APIView):
    """Current authenticated user.

    GET /api/auth/me/
    PUT/PATCH /api/auth/me/  Body: {"first_name"?, "last_name"?, "license_number"?}
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        serializer = UserSerializer(request.user)
        return Response(serializer.data, status=status.HTTP_200_OK)

    def put(self, request, *args, **kwargs):
        serializer = UserProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)

    patch = put


class ChangePasswordView(APIView):
    """POST /api/auth/change-password/ - verify, set, then revoke all refresh tokens."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tokens.change_password(
            request.user,
            serializer.validated_data['old_password'],
            serializer.validated_data['new_password'],
            client_address=client_address(request),
        )
        return Response(
            {'detail': 'Password changed successfully. Please log in again.'},
            status=status.HTTP_200_OK,
        )


class VerifyView(APIView):
    """GET /api/auth/verify/ - the identity carried by the presented access token."""

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        identity = identity_for_request(request)
        return Response(
            {'valid': True, 'identity': identity.to_dict() if identity else None},
            status=status.HTTP_200_OK,
        )


class FacilityListView(generics.ListAPIView):
    """GET /api/facilities/ - active facilities (admins also see inactive ones)."""

    serializer_class = FacilitySerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Facility.objects.all()
        if not is_admin(identity_for_request(self.request)):
            qs = qs.filter(is_active=True)
        return qs.order_by('name', 'id')


class FacilityDetailView(generics.RetrieveAPIView):
    """GET /api/facilities/<facility_id>/ - restricted to members of the facility."""

    queryset = Facility.objects.all()
    serializer_class = FacilitySerializer
    permission_classes = [IsAuthenticated, FacilityAccessPermission]
    lookup_url_kwarg = 'facility_id'
