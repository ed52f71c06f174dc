import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from .. import config
from .version import get_app_version


def get_sentry_kwargs():
    """
    Returns Sentry configuration kwargs.

    The aiohttp integration instruments the client sessions used by the transport.
    """
    return {
        "dsn": config.SENTRY_DSN,
        "integrations": [AioHttpIntegration()],
        "release": get_app_version(),
        "traces_sample_rate": config.SENTRY_SAMPLE_RATE or 1.0,
    }


def init_sentry() -> bool:
    """Initialize Sentry when a DSN is configured"""
    if not config.SENTRY_DSN:
        return False
    sentry_sdk.init(**get_sentry_kwargs())
    return True
