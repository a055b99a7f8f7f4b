"""
Google OAuth wiring for this service.

SECURITY: ANTI_FORGERY_SECRET and SESSION_SECRET_KEY must be set to strong
values in production.
"""
from typing import Optional

import httpx

from googleauth.config import settings
from googleauth.services.discovery import DiscoveryDocumentCache
from googleauth.services.google_auth import GoogleAuth, GoogleAuthConfig


def create_http_client() -> httpx.AsyncClient:
    """Shared client for calls to Google, with the configured timeout."""
    return httpx.AsyncClient(timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS))


def create_google_auth(
    client: httpx.AsyncClient,
    config: Optional[GoogleAuthConfig] = None,
) -> GoogleAuth:
    return GoogleAuth(
        config or GoogleAuthConfig.from_settings(settings),
        client,
        DiscoveryDocumentCache(settings.GOOGLE_DISCOVERY_URL),
    )
