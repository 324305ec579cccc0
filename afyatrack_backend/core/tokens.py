"""Token Service: access/refresh token pairs.

Access tokens are short-lived HS256 JWTs verified without touching the
database. Refresh tokens are opaque random strings stored in
``core_refresh_token``; they are exchanged for a new pair (rotation), revoked
on logout or password change, and removed by the periodic sweep once revoked
or expired.

A refresh token row moves ``active -> revoked`` or expires by time. Nothing
leaves ``revoked``. Rotation revokes the presented row with a conditional
UPDATE before the replacement is inserted, in one transaction, so a token can
only ever be exchanged once.

An access token keeps verifying after logout until its own expiry. Only the
refresh token is revoked server-side.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import ExpiredTokenError, TokenError
from rest_framework_simplejwt.tokens import AccessToken

from .exceptions import (
    Conflict,
    ExpiredToken,
    InactiveAccount,
    InvalidCredentials,
    InvalidInput,
    InvalidOrExpiredRefreshToken,
    InvalidToken,
)
from .models import Facility, RefreshToken

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 64

# Roles a user may pick for themselves at registration. Admins are created by
# admins (or the seed command).
SELF_REGISTRATION_ROLES = {'doctor', 'nurse', 'receptionist'}


# -----------------------------------------------------------------------------
# Value objects
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """Verified identity carried by an access token."""

    user_id: int
    email: str
    role: str
    facility_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @classmethod
    def from_user(cls, user) -> 'Identity':
        return cls(
            user_id=user.pk,
            email=user.email,
            role=user.role,
            facility_id=user.facility_id,
        )

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> 'Identity':
        try:
            user_id = int(claims['user_id'])
            role = claims['role']
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken('Access token is missing required claims.') from exc
        if not role:
            raise InvalidToken('Access token is missing required claims.')

        facility_id = claims.get('facility_id')
        return cls(
            user_id=user_id,
            email=claims.get('email', ''),
            role=role,
            facility_id=int(facility_id) if facility_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'user_id': self.user_id,
            'email': self.email,
            'role': self.role,
            'facility_id': self.facility_id,
        }


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime

    def as_dict(self) -> dict[str, str]:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expires_at': self.access_expires_at.isoformat(),
        }


# -----------------------------------------------------------------------------
# Settings helpers
# -----------------------------------------------------------------------------


def _jwt_settings() -> dict[str, Any]:
    return settings.SIMPLE_JWT


def _access_lifetime() -> timedelta:
    return _jwt_settings().get('ACCESS_TOKEN_LIFETIME', timedelta(hours=24))


def _refresh_lifetime() -> timedelta:
    return _jwt_settings().get('REFRESH_TOKEN_LIFETIME', timedelta(days=7))


# -----------------------------------------------------------------------------
# Access tokens (stateless)
# -----------------------------------------------------------------------------


def create_access_token(identity: Identity, now: datetime | None = None) -> tuple[str, datetime]:
    """Sign an access token for ``identity``. Returns (token, expires_at).

    simplejwt's AccessToken sets token_type, jti, iat and exp; its token
    backend adds iss/aud and signs with SIMPLE_JWT's key and algorithm.
    """
    token = AccessToken()
    issued_at = now or token.current_time
    expires_at = issued_at + _access_lifetime()
    token.set_iat(at_time=issued_at)
    token.set_exp(from_time=issued_at, lifetime=_access_lifetime())

    token['user_id'] = identity.user_id
    token['email'] = identity.email
    token['role'] = identity.role
    token['facility_id'] = identity.facility_id

    return str(token), expires_at


def verify_access_token(token: str | bytes) -> Identity:
    """Verify an access token and return its identity.

    Pure: no database access. Raises ExpiredToken when the signature is valid
    but ``exp`` has passed, InvalidToken for everything else.
    """
    if isinstance(token, bytes):
        token = token.decode('utf-8', errors='replace')
    if not token:
        raise InvalidToken()

    try:
        access = AccessToken(token)
    except ExpiredTokenError as exc:
        raise ExpiredToken() from exc
    except TokenError as exc:
        raise InvalidToken() from exc

    return Identity.from_claims(access.payload)


# -----------------------------------------------------------------------------
# Refresh tokens (stateful)
# -----------------------------------------------------------------------------


def generate_refresh_token() -> str:
    """Opaque high-entropy token: 64 random bytes, hex encoded."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def issue_token_pair(user, client_address: str | None = None) -> TokenPair:
    """Sign an access token and persist a fresh refresh token for ``user``.

    Database errors propagate: a pair is never returned without its row.
    """
    now = timezone.now()
    access_token, access_expires_at = create_access_token(Identity.from_user(user), now=now)
    refresh_token = generate_refresh_token()

    RefreshToken.objects.create(
        token=refresh_token,
        user=user,
        expires_at=now + _refresh_lifetime(),
        created_by_ip=client_address,
    )
    logger.info('Issued token pair (user_id=%s)', user.pk)

    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=access_expires_at,
    )


def rotate_refresh_token(old_token: str, client_address: str | None = None) -> tuple[Any, TokenPair]:
    """Exchange ``old_token`` for a new pair. Returns (user, pair).

    The presented row is revoked by a conditional UPDATE that only matches an
    active row; of two concurrent rotations of the same token exactly one
    matches. The replacement is inserted in the same transaction.
    """
    if not old_token:
        raise InvalidOrExpiredRefreshToken()

    with transaction.atomic():
        now = timezone.now()
        revoked = (
            RefreshToken.objects
            .active(now=now)
            .filter(token=old_token)
            .update(is_revoked=True, revoked_at=now, revoked_by_ip=client_address)
        )
        if revoked != 1:
            logger.warning('Refresh token rotation rejected (unknown, revoked or expired token)')
            raise InvalidOrExpiredRefreshToken()

        user = RefreshToken.objects.select_related('user').get(token=old_token).user
        pair = issue_token_pair(user, client_address=client_address) if user.is_active else None

    # The presented token stays revoked for a deactivated account.
    if pair is None:
        logger.warning('Refresh token rotation rejected for inactive user_id=%s', user.pk)
        raise InactiveAccount()

    logger.info('Rotated refresh token (user_id=%s)', user.pk)
    return user, pair


def revoke(token: str, client_address: str | None = None) -> bool:
    """Revoke one refresh token. Idempotent.

    Returns True if this call revoked the row, False if the token is unknown
    or was already revoked.
    """
    if not token:
        return False

    updated = (
        RefreshToken.objects
        .filter(token=token, is_revoked=False)
        .update(is_revoked=True, revoked_at=timezone.now(), revoked_by_ip=client_address)
    )
    if updated:
        logger.info('Revoked refresh token')
    return bool(updated)


def revoke_all(user, client_address: str | None = None) -> int:
    """Revoke every non-revoked refresh token of ``user`` (logout everywhere)."""
    user_id = getattr(user, 'pk', user)
    count = (
        RefreshToken.objects
        .filter(user_id=user_id, is_revoked=False)
        .update(is_revoked=True, revoked_at=timezone.now(), revoked_by_ip=client_address)
    )
    logger.info('Revoked %s refresh token(s) (user_id=%s)', count, user_id)
    return count


def sweep_expired(now: datetime | None = None) -> int:
    """Delete refresh tokens that are revoked or past expiry.

    Active rows (not revoked and ``expires_at > now``) are never touched.
    """
    deleted, _ = RefreshToken.objects.inactive(now=now).delete()
    return deleted


# -----------------------------------------------------------------------------
# Credential flows
# -----------------------------------------------------------------------------


def authenticate_credentials(email: str, password: str):
    """Return the active user for ``email``/``password`` or raise InvalidCredentials.

    Unknown e-mail, wrong password and deactivated account are deliberately
    indistinguishable to the caller.
    """
    User = get_user_model()
    email = (email or '').strip().lower()
    if not email or not password:
        raise InvalidCredentials()

    user = User.objects.select_related('facility').filter(email=email).first()
    if user is None:
        # Keep timing roughly comparable to a real password check.
        User().set_password(password)
        raise InvalidCredentials()

    if not user.check_password(password) or not user.is_active:
        raise InvalidCredentials()

    return user


def login(email: str, password: str, client_address: str | None = None) -> tuple[Any, TokenPair]:
    """Authenticate, stamp last_login and issue a pair. Returns (user, pair)."""
    user = authenticate_credentials(email, password)

    with transaction.atomic():
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        pair = issue_token_pair(user, client_address=client_address)

    return user, pair


def register(
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = 'doctor',
    license_number: str = '',
    facility_id: int | None = None,
    client_address: str | None = None,
) -> tuple[Any, TokenPair]:
    """Create a user and issue their first token pair."""
    User = get_user_model()
    email = (email or '').strip().lower()

    if role not in SELF_REGISTRATION_ROLES:
        raise InvalidInput(f"Role must be one of: {', '.join(sorted(SELF_REGISTRATION_ROLES))}.")

    if User.objects.filter(email=email).exists():
        raise Conflict('User with this email already exists.')

    facility = None
    if facility_id is not None:
        facility = Facility.objects.filter(pk=facility_id, is_active=True).first()
        if facility is None:
            raise InvalidInput('Invalid facility ID.')

    candidate = User(email=email, first_name=first_name, last_name=last_name)
    try:
        validate_password(password, user=candidate)
    except DjangoValidationError as exc:
        raise InvalidInput('Password validation failed.', errors=list(exc.messages)) from exc

    with transaction.atomic():
        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            license_number=license_number or '',
            facility=facility,
        )
        pair = issue_token_pair(user, client_address=client_address)

    logger.info('Registered user_id=%s role=%s', user.pk, role)
    return user, pair


def change_password(user, old_password: str, new_password: str, client_address: str | None = None) -> int:
    """Verify ``old_password``, set ``new_password`` and end every session.

    Returns the number of refresh tokens revoked.
    """
    if not user.check_password(old_password or ''):
        raise InvalidInput('Current password is incorrect.', code='invalid_password')

    try:
        validate_password(new_password, user=user)
    except DjangoValidationError as exc:
        raise InvalidInput('Password validation failed.', errors=list(exc.messages)) from exc

    with transaction.atomic():
        user.set_password(new_password)
        user.save(update_fields=['password'])
        revoked = revoke_all(user, client_address=client_address)

    logger.info('Password changed (user_id=%s)', user.pk)
    return revoked
