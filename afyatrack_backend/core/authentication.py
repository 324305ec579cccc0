"""DRF authentication backed by the Token Service.

Header handling (``Authorization: Bearer <token>``) and the 401
``WWW-Authenticate`` challenge come from simplejwt's JWTAuthentication;
validation is ``core.tokens.verify_access_token``. After a successful
authentication ``request.user`` is the User and ``request.auth`` the
verified ``Identity``.
"""

from __future__ import annotations

import logging

from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken as SimpleJWTInvalidToken

from . import tokens
from .exceptions import ExpiredToken, InvalidToken

logger = logging.getLogger(__name__)


class AccessTokenExpired(exceptions.AuthenticationFailed):
    default_detail = 'Access token has expired.'
    default_code = 'token_expired'


class AccessTokenAuthentication(JWTAuthentication):
    """Authenticate requests carrying an AfyaTrack access token."""

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        identity = self.get_validated_token(raw_token)
        return self.get_user(identity), identity

    def get_validated_token(self, raw_token):
        try:
            return tokens.verify_access_token(raw_token)
        except ExpiredToken as exc:
            raise AccessTokenExpired() from exc
        except InvalidToken as exc:
            raise SimpleJWTInvalidToken({'detail': exc.detail, 'code': exc.code}) from exc

    def get_user(self, validated_token):
        user = (
            self.user_model.objects
            .select_related('facility')
            .filter(pk=validated_token.user_id)
            .first()
        )
        if user is None:
            logger.warning('Valid access token for unknown user_id=%s', validated_token.user_id)
            raise exceptions.AuthenticationFailed('User not found.', code='user_not_found')
        if not user.is_active:
            raise exceptions.AuthenticationFailed('User account is deactivated.', code='user_inactive')
        return user
