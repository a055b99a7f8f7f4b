"""Pytest configuration and fixtures for Google login tests."""

import time
from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from googleauth.services.anti_forgery import AntiForgeryChecker
from googleauth.services.discovery import DiscoveryDocumentCache
from googleauth.services.google_auth import GoogleAuth, GoogleAuthConfig
from googleauth.services.secret_rotation import InitialSecret

NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
SECRET = "first-secret-value-for-tests"

DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
USERINFO_ENDPOINT = "https://openidconnect.googleapis.com/v1/userinfo"


def make_id_token(email: str = "user@example.com", sub: str = "10769150350006150715113082367", exp: int = None) -> str:
    """An identity token shaped like Google's; only its claims are read."""
    claims = {
        "iss": "https://accounts.google.com",
        "sub": sub,
        "email": email,
        "exp": exp if exp is not None else int(time.time()) + 3600,
    }
    return jwt.encode(claims, "google-signing-key", algorithm="HS256")


class FakeGoogle:
    """Answers like Google's OpenID Connect endpoints and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.discovery_status = 200
        self.token_status = 200
        self.token_body = {
            "access_token": "ya29.access-token",
            "id_token": make_id_token(),
            "expires_in": 3599,
            "token_type": "Bearer",
        }
        self.userinfo_body = {
            "sub": "10769150350006150715113082367",
            "given_name": "Ada",
            "family_name": "Lovelace",
            "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
        }
        self.fail_with = None

    def paths(self) -> list[str]:
        return [str(r.url.copy_with(query=None)) for r in self.requests]

    def token_form(self) -> dict:
        request = next(r for r in self.requests if str(r.url) == TOKEN_ENDPOINT)
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        url = str(request.url.copy_with(query=None))
        if url == DISCOVERY_URL:
            return httpx.Response(self.discovery_status, json={
                "issuer": "https://accounts.google.com",
                "authorization_endpoint": AUTHORIZATION_ENDPOINT,
                "token_endpoint": TOKEN_ENDPOINT,
                "userinfo_endpoint": USERINFO_ENDPOINT,
            })
        if url == TOKEN_ENDPOINT and request.method == "POST":
            if isinstance(self.token_body, str):
                return httpx.Response(self.token_status, text=self.token_body)
            return httpx.Response(self.token_status, json=self.token_body)
        if url == USERINFO_ENDPOINT:
            return httpx.Response(200, json=self.userinfo_body)
        return httpx.Response(404, json={"error": {"message": "not found"}})


@pytest.fixture
def checker() -> AntiForgeryChecker:
    return AntiForgeryChecker(InitialSecret(SECRET))


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest_asyncio.fixture
async def http_client(fake_google: FakeGoogle):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_google.handler)) as client:
        yield client


@pytest.fixture
def config(checker: AntiForgeryChecker) -> GoogleAuthConfig:
    return GoogleAuthConfig.with_no_domain_restriction(
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        redirect_url="https://app.example.com/auth/google/callback",
        anti_forgery_checker=checker,
    )


@pytest.fixture
def google_auth(config: GoogleAuthConfig, http_client: httpx.AsyncClient) -> GoogleAuth:
    return GoogleAuth(config, http_client, DiscoveryDocumentCache(DISCOVERY_URL))
