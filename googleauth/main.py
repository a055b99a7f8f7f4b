"""
Google login service.

FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from googleauth.config import settings
from googleauth.errors import GoogleAuthError
from googleauth.logging_config import configure_logging
from googleauth.middleware.logging import LoggingMiddleware
from googleauth.oauth import create_google_auth, create_http_client
from googleauth.routes.auth import google_auth_error_handler, router as auth_router
from googleauth.sentry_config import configure_sentry
from googleauth.services.google_auth import GoogleAuth

# Initialize logging first
configure_logging(debug=settings.DEBUG)

# Initialize Sentry (if SENTRY_DSN is set)
configure_sentry()


def create_app(google_auth: Optional[GoogleAuth] = None) -> FastAPI:
    """
    Build the application.

    Pass `google_auth` to supply a preconfigured instance (its HTTP client is
    then owned by the caller); otherwise one is built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if google_auth is not None:
            app.state.google_auth = google_auth
            yield
            return
        async with create_http_client() as client:
            app.state.google_auth = create_google_auth(client)
            yield

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Server-side Google sign-in with signed anti-forgery state",
        lifespan=lifespan,
    )

    if google_auth is not None:
        app.state.google_auth = google_auth

    # Logging is innermost so it can see the session
    app.add_middleware(LoggingMiddleware, session_id_key_name=settings.SESSION_ID_KEY_NAME)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=not settings.DEBUG,
    )

    app.add_exception_handler(GoogleAuthError, google_auth_error_handler)

    app.include_router(auth_router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Detailed health check."""
        return {"status": "healthy"}

    return app


app = create_app()
