import logging

from celery import shared_task

from . import tokens

logger = logging.getLogger(__name__)


@shared_task(name='afyatrack_backend.core.tasks.sweep_expired_refresh_tokens', ignore_result=True)
def sweep_expired_refresh_tokens():
    """Periodic clean-up of revoked/expired refresh tokens (Celery beat, hourly).

    Failures are logged and retried on the next run.
    """
    try:
        deleted = tokens.sweep_expired()
    except Exception:
        logger.exception('Refresh token sweep failed')
        return 0

    if deleted:
        logger.info('Refresh token sweep removed %s row(s)', deleted)
    return deleted
