import logging

import sentry_sdk

from config import Settings

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry for production monitoring.

    Does nothing unless a DSN is configured. Returns whether Sentry is active.
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=0.5,
        environment=settings.environment,
        release=settings.version,
        send_default_pii=False,
    )
    logger.info("Sentry initialised", extra={"environment": settings.environment})
    return True


async def sentry_alert_hook(request, exc):
    sentry_sdk.capture_exception(exc)
