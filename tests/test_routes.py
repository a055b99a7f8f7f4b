"""API tests for the login, callback and session endpoints."""

import time

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from googleauth.config import settings
from googleauth.errors import AuthFailure, GoogleAuthError
from googleauth.main import create_app
from googleauth.sentry_config import drop_login_failures
from googleauth.services.anti_forgery import SESSION_ID_CLAIM
from googleauth.services.google_auth import GoogleAuth

from conftest import AUTHORIZATION_ENDPOINT, FakeGoogle, make_id_token


@pytest_asyncio.fixture
async def client(google_auth: GoogleAuth):
    """Async HTTP client against an app wired to the fake Google."""
    app = create_app(google_auth)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client: AsyncClient) -> httpx.URL:
    response = await client.get("/auth/login/google")
    assert response.status_code == 303
    return httpx.URL(response.headers["location"])


class TestLoginFlow:

    async def test_login_redirects_to_google(self, client: AsyncClient):
        location = await _login(client)

        assert str(location.copy_with(query=None)) == AUTHORIZATION_ENDPOINT
        assert location.params["response_type"] == "code"
        assert location.params["state"]
        assert "session" in client.cookies

    async def test_session_id_kept_across_logins(self, client: AsyncClient):
        first = await _login(client)
        second = await _login(client)

        first_claims = jwt.get_unverified_claims(first.params["state"])
        second_claims = jwt.get_unverified_claims(second.params["state"])
        assert first_claims[SESSION_ID_CLAIM] == second_claims[SESSION_ID_CLAIM]

    async def test_full_login_then_me_then_logout(self, client: AsyncClient):
        location = await _login(client)

        callback = await client.get(
            "/auth/google/callback",
            params={"state": location.params["state"], "code": "4/0AX4XfWh"},
        )
        assert callback.status_code == 303
        assert callback.headers["location"] == settings.FRONTEND_URL

        me = await client.get("/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "user@example.com"
        assert me.json()["first_name"] == "Ada"

        logout = await client.post("/auth/logout")
        assert logout.status_code == 200

        me_after = await client.get("/auth/me")
        assert me_after.status_code == 401

    async def test_second_login_hints_current_email(self, client: AsyncClient):
        location = await _login(client)
        await client.get("/auth/google/callback", params={"state": location.params["state"], "code": "4/abc"})

        again = await _login(client)

        assert again.params["login_hint"] == "user@example.com"


class TestCallbackFailures:

    async def test_callback_without_session(self, client: AsyncClient):
        response = await client.get("/auth/google/callback", params={"state": "x", "code": "4/abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "no_session_id"

    async def test_callback_with_garbage_state(self, client: AsyncClient):
        await _login(client)

        response = await client.get("/auth/google/callback", params={"state": "garbage", "code": "4/abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "malformed_token"

    async def test_callback_without_state(self, client: AsyncClient):
        await _login(client)

        response = await client.get("/auth/google/callback", params={"code": "4/abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "no_state_parameter"

    async def test_provider_error_is_bad_gateway(self, client: AsyncClient, fake_google: FakeGoogle):
        location = await _login(client)
        fake_google.token_status = 400
        fake_google.token_body = {"error": {"message": "invalid_grant"}}

        response = await client.get(
            "/auth/google/callback", params={"state": location.params["state"], "code": "4/abc"},
        )

        assert response.status_code == 502
        assert response.json() == {"error": "provider_error", "detail": "invalid_grant"}

    async def test_no_identity_stored_after_failure(self, client: AsyncClient, fake_google: FakeGoogle):
        location = await _login(client)
        fake_google.token_status = 400
        fake_google.token_body = {"error": "invalid_grant"}

        await client.get("/auth/google/callback", params={"state": location.params["state"], "code": "4/abc"})

        assert (await client.get("/auth/me")).status_code == 401


class TestCurrentUser:

    async def test_me_requires_login(self, client: AsyncClient):
        response = await client.get("/auth/me")

        assert response.status_code == 401

    async def test_expired_identity_rejected_when_validity_enforced(
        self, client: AsyncClient, fake_google: FakeGoogle
    ):
        fake_google.token_body["id_token"] = make_id_token(exp=int(time.time()) - 10)
        location = await _login(client)
        await client.get("/auth/google/callback", params={"state": location.params["state"], "code": "4/abc"})

        response = await client.get("/auth/me")

        assert response.status_code == 401


class TestHealth:

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.json() == {"status": "healthy"}


class TestSentryFilter:

    def test_login_failures_not_reported(self):
        error = GoogleAuthError(AuthFailure.SESSION_MISMATCH, "mismatch")

        assert drop_login_failures({"event_id": "1"}, {"exc_info": (GoogleAuthError, error, None)}) is None

    def test_other_errors_reported(self):
        event = {"event_id": "2"}

        assert drop_login_failures(event, {"exc_info": (RuntimeError, RuntimeError("boom"), None)}) is event
        assert drop_login_failures(event, {}) is event
