"""
Google's OpenID Connect discovery document, fetched once per process.
"""
import asyncio
from typing import Optional

import httpx
from pydantic import ValidationError

from googleauth.errors import AuthFailure, GoogleAuthError
from googleauth.logging_config import get_logger
from googleauth.models.identity import DiscoveryDocument
from googleauth.services.google_http import call_google

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"

logger = get_logger(component="discovery")


class DiscoveryDocumentCache:
    """
    Lazily fetched, never refreshed discovery document.

    Concurrent first callers share one in-flight fetch. A failed fetch is
    forgotten so the next caller tries again; a successful one is kept.
    """

    def __init__(self, url: str = GOOGLE_DISCOVERY_URL):
        self.url = url
        self._pending: Optional[asyncio.Future] = None

    async def get(self, client: httpx.AsyncClient) -> DiscoveryDocument:
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._fetch(client))
        pending = self._pending
        try:
            # shield: one caller being cancelled must not cancel the shared fetch
            return await asyncio.shield(pending)
        except Exception:
            if self._pending is pending:
                self._pending = None
            raise

    async def _fetch(self, client: httpx.AsyncClient) -> DiscoveryDocument:
        body = await call_google(client, "GET", self.url)
        try:
            document = DiscoveryDocument.model_validate(body)
        except ValidationError as e:
            raise GoogleAuthError(
                AuthFailure.PROVIDER_ERROR,
                f"Discovery document is missing endpoints: {e.error_count()} errors",
            ) from e
        logger.info("discovery_document_loaded", url=self.url)
        return document

    def clear(self) -> None:
        self._pending = None
