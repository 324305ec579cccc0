"""
Domain exceptions for the AfyaTrack backend.

Services raise these; ``api_exception_handler`` (configured as DRF's
EXCEPTION_HANDLER) renders them as ``{"detail": ..., "code": ...}`` with the
status code carried by the exception class. Anything that is neither one of
these nor a DRF APIException is left to Django, which answers with a bare 500.
"""

from __future__ import annotations

import logging
from typing import Any

from rest_framework.response import Response

logger = logging.getLogger(__name__)


class AfyaTrackError(Exception):
    """Base exception for all AfyaTrack domain errors."""

    status_code = 400
    default_code = 'error'
    default_detail = 'Request could not be processed.'

    def __init__(self, detail: str | None = None, *, code: str | None = None, **extra: Any):
        self.detail = detail or self.default_detail
        self.code = code or self.default_code
        self.extra = extra
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        result = {
            'detail': self.detail,
            'code': self.code,
        }
        if self.extra:
            result.update(self.extra)
        return result


# -----------------------------------------------------------------------------
# Authentication
# -----------------------------------------------------------------------------


class AuthenticationError(AfyaTrackError):
    """Base for failures that must be answered with 401."""

    status_code = 401
    default_code = 'authentication_failed'
    default_detail = 'Authentication failed.'


class InvalidCredentials(AuthenticationError):
    """Unknown e-mail, wrong password or deactivated account at login."""

    default_code = 'invalid_credentials'
    default_detail = 'Invalid email or password.'


class InvalidToken(AuthenticationError):
    """Access token has a bad signature, bad format or missing claims."""

    default_code = 'token_not_valid'
    default_detail = 'Invalid access token.'


class ExpiredToken(AuthenticationError):
    """Access token signature is valid but its expiry has passed."""

    default_code = 'token_expired'
    default_detail = 'Access token has expired.'


class InvalidOrExpiredRefreshToken(AuthenticationError):
    """Refresh token is unknown, revoked or past its expiry."""

    default_code = 'invalid_refresh_token'
    default_detail = 'Invalid or expired refresh token.'


class InactiveAccount(AuthenticationError):
    default_code = 'account_inactive'
    default_detail = 'User account is deactivated.'


# -----------------------------------------------------------------------------
# Authorization / records
# -----------------------------------------------------------------------------


class Forbidden(AfyaTrackError):
    status_code = 403
    default_code = 'permission_denied'
    default_detail = 'You do not have permission to perform this action.'


class NotFound(AfyaTrackError):
    status_code = 404
    default_code = 'not_found'
    default_detail = 'Not found.'


class Conflict(AfyaTrackError):
    """Unique business key already in use (e-mail, national id, NHIF number)."""

    status_code = 409
    default_code = 'conflict'
    default_detail = 'A record with these details already exists.'


class InvalidInput(AfyaTrackError):
    status_code = 400
    default_code = 'invalid'
    default_detail = 'Invalid input.'


# -----------------------------------------------------------------------------
# DRF integration
# -----------------------------------------------------------------------------


def api_exception_handler(exc, context):
    """DRF exception handler that also understands AfyaTrackError."""
    # rest_framework.views loads the authentication classes, which import
    # this module through core.tokens.
    from rest_framework.views import exception_handler

    if isinstance(exc, AfyaTrackError):
        view = context.get('view')
        logger.info(
            '%s in %s: %s',
            type(exc).__name__,
            type(view).__name__ if view is not None else 'unknown view',
            exc.code,
        )
        response = Response(exc.to_dict(), status=exc.status_code)
        if exc.status_code == 401:
            response['WWW-Authenticate'] = 'Bearer realm="api"'
        return response

    return exception_handler(exc, context)
