"""
Request logging with the login context.

Each request is logged once with its outcome. Query parameters are included
so failed callbacks can be diagnosed; `state` and `code` are masked by the
redaction processor in logging_config.
"""
import time

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from googleauth.models.identity import UserIdentity

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request_completed / request_failed with timing, user and session state."""

    def __init__(self, app, session_id_key_name: str):
        super().__init__(app)
        self.session_id_key_name = session_id_key_name

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()

        # Only present when SessionMiddleware wraps this one
        session = request.scope.get("session") or {}
        identity = UserIdentity.from_session(session)
        request_logger = logger.bind(
            route=request.url.path,
            method=request.method,
            query=dict(request.query_params),
            user_email=identity.email if identity else None,
            has_session_id=self.session_id_key_name in session,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error=repr(e),
            )
            raise

        request_logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
