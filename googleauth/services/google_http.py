"""
Calls to Google's OAuth endpoints.

Every response goes through `google_response`, which turns an error status
into a GoogleAuthError using Google's error document when it sent one.
Transport problems (including timeouts from the shared client) surface as
NETWORK_FAILURE. Nothing here retries.
"""
from typing import Any

import httpx

from googleauth.errors import AuthFailure, GoogleAuthError
from googleauth.logging_config import get_logger

logger = get_logger(component="google_http")


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    # The token endpoint uses the RFC 6749 shape: {"error": "invalid_grant", ...}
    if isinstance(error, str):
        return error
    return None


def google_response(response: httpx.Response) -> Any:
    """Return the JSON body of a successful response, or raise PROVIDER_ERROR."""
    if not response.is_success:
        message = _error_message(response)
        logger.warning(
            "google_error_response",
            status_code=response.status_code,
            error=message,
        )
        if message is None:
            message = (
                f"Unknown error when calling Google "
                f"[status={response.status_code}, body={response.text}]"
            )
        raise GoogleAuthError(AuthFailure.PROVIDER_ERROR, message)
    try:
        return response.json()
    except ValueError:
        raise GoogleAuthError(
            AuthFailure.PROVIDER_ERROR,
            f"Google returned a non-JSON body [status={response.status_code}]",
        )


async def call_google(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> Any:
    """Send one request to Google and return its JSON body."""
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TransportError as e:
        logger.warning("google_request_failed", url=url, error=repr(e))
        raise GoogleAuthError(
            AuthFailure.NETWORK_FAILURE,
            f"Could not reach Google: {e!r}",
        ) from e
    return google_response(response)
