"""
Error telemetry via Sentry.

Only failures answered with a 5xx status are reported. Reporting never
influences the HTTP response: errors raised while reporting are logged
and dropped.
"""

import logging
from typing import Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: Optional[str],
    environment: str = "development",
    release: Optional[str] = None,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize the Sentry SDK.

    Returns:
        True if Sentry was initialized, False when no DSN is configured
    """
    if not dsn:
        logger.warning("Sentry DSN not configured. Error tracking disabled.")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="url"),
            LoggingIntegration(level=logging.INFO, event_level=None),
        ],
        send_default_pii=False,
    )
    logger.info("Sentry initialized: environment=%s, release=%s", environment, release)
    return True


def report_error(
    message: str,
    exception: Optional[BaseException] = None,
    tags: Optional[Dict[str, str]] = None,
) -> None:
    """Send an exception, or a message when there is none, to Sentry."""
    try:
        with sentry_sdk.new_scope() as scope:
            scope.level = "error"
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)
            if exception is not None:
                sentry_sdk.capture_exception(exception)
            else:
                sentry_sdk.capture_message(message, level="error")
    except Exception:
        logger.exception("Failed to report error to Sentry")
