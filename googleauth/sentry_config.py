"""
Sentry configuration for error tracking.

Captures unhandled exceptions. Login failures are expected traffic and are
logged, not reported.
"""
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from googleauth.config import settings
from googleauth.errors import GoogleAuthError
from googleauth.logging_config import get_logger

logger = get_logger(component="sentry")


def configure_sentry():
    """
    Initialize Sentry with the FastAPI integration.
    
    Requires SENTRY_DSN environment variable to be set.
    """
    dsn = settings.SENTRY_DSN
    
    if not dsn:
        logger.info("sentry_disabled")
        return
    
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FastApiIntegration(),
        ],
        before_send=drop_login_failures,
        # Sample rate: capture 10% of transactions for performance monitoring
        traces_sample_rate=0.1,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
    )
    
    logger.info("sentry_enabled", environment=settings.ENVIRONMENT)


def drop_login_failures(event, hint):
    """
    Skip GoogleAuthError events; they are rendered as 4xx/502 responses.
    """
    exc_info = hint.get("exc_info") if hint else None
    if exc_info and isinstance(exc_info[1], GoogleAuthError):
        return None
    return event
