import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from rest_framework.settings import api_settings

from .models import AuditLog

logger = logging.getLogger(__name__)


def client_address(request):
    """Client IP recorded on refresh tokens, or None.

    X-Forwarded-For is only read behind NUM_PROXIES trusted proxies, taking the
    hop the outermost proxy appended (as DRF's throttles do). Values that are
    not an IPv4/IPv6 address are dropped.
    """
    address = request.META.get('REMOTE_ADDR')
    num_proxies = api_settings.NUM_PROXIES
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')

    if num_proxies and forwarded:
        hops = [hop.strip() for hop in forwarded.split(',')]
        address = hops[-min(num_proxies, len(hops))]

    if not address:
        return None
    try:
        validate_ipv46_address(address)
    except ValidationError:
        logger.warning('Ignoring malformed client address %r', address[:64])
        return None
    return address


def log_patient_action(user, action, patient_id=None, meta=None):
    """Writes patient access actions to the audit log. Never raises."""

    role_name = getattr(user, 'role', '') or ''

    try:
        AuditLog.objects.create(
            user=user if getattr(user, 'is_authenticated', False) else None,
            role_name=role_name,
            action=action,
            patient_id=patient_id,
            meta=meta,
        )
    except Exception:
        logger.exception('AuditLog write failed (action=%s, patient_id=%s)', action, patient_id)
