"""
Structured logging configuration using structlog.

All logs are output as JSON with consistent context fields. OAuth codes,
state tokens and credentials are masked before rendering.
"""
import logging
import sys

import structlog

SENSITIVE_KEYS = frozenset({
    "state",
    "code",
    "client_secret",
    "access_token",
    "id_token",
    "secret",
})

REDACTED = "[redacted]"


def _redact(value):
    if isinstance(value, dict):
        return {
            k: REDACTED if k in SENSITIVE_KEYS else _redact(v)
            for k, v in value.items()
        }
    return value


def redact_sensitive(logger, method_name, event_dict):
    """structlog processor: mask sensitive fields, including inside nested dicts."""
    return _redact(event_dict)


def configure_logging(debug: bool = False):
    """Configure structlog for JSON output; DEBUG level when `debug` is set."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_sensitive,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


def get_logger(**context):
    """
    Get a logger with additional context bound.

    Usage:
        log = get_logger(component="anti_forgery")
        log.warning("anti_forgery_rejected", failure=failure.value)
    """
    return structlog.get_logger(**context)
