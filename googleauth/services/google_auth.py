"""
Server-side Google sign-in.

GoogleAuth builds the redirect to Google's authorization endpoint with an
anti-forgery token in `state`, and turns the callback into a verified
UserIdentity: check the state, exchange the code, check the identity
token's domain, then fetch the profile.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from jose import jwt
from jose.exceptions import JOSEError
from pydantic import ValidationError

from googleauth.config import Settings
from googleauth.errors import AuthFailure, GoogleAuthError
from googleauth.logging_config import get_logger
from googleauth.models.identity import IdTokenClaims, TokenResponse, UserIdentity, UserInfo
from googleauth.services.anti_forgery import AntiForgeryChecker
from googleauth.services.discovery import DiscoveryDocumentCache
from googleauth.services.google_http import call_google
from googleauth.services.secret_rotation import secret_provider_from_settings

SCOPE = "openid email profile"

logger = get_logger(component="google_auth")

_ANTI_FORGERY_MESSAGES = {
    AuthFailure.NO_SESSION_ID: "No session ID found",
    AuthFailure.NO_STATE_PARAMETER: "No anti-forgery state returned in OAuth callback",
    AuthFailure.MALFORMED_TOKEN: "The anti-forgery state could not be parsed",
    AuthFailure.INVALID_SIGNATURE: "OAuth anti-forgery state doesn't have a valid signature",
    AuthFailure.ALGORITHM_MISMATCH: "The anti-forgery token is not signed with the configured algorithm",
    AuthFailure.EXPIRED: "The anti-forgery token has expired",
    AuthFailure.SESSION_MISMATCH: "The session ID in the anti-forgery token does not match the session ID",
}


@dataclass(frozen=True)
class GoogleAuthConfig:
    """
    Settings for Google authentication.

    Args:
        client_id: Client ID from the Google developer console
        client_secret: Client secret from the Google developer console
        redirect_url: URL Google returns to after authentication
        domain: Only accept accounts from this email domain (None accepts any account)
        max_auth_age: Ask the user for their password again after this long
        enforce_validity: Require re-authentication once the identity expires
        prompt: Space-delimited OpenID Connect prompt values, e.g. "select_account"
        anti_forgery_checker: Signs and checks the OAuth state parameter
    """
    client_id: str
    client_secret: str
    redirect_url: str
    domain: Optional[str]
    anti_forgery_checker: AntiForgeryChecker
    max_auth_age: Optional[timedelta] = None
    enforce_validity: bool = True
    prompt: Optional[str] = None

    @classmethod
    def with_no_domain_restriction(
        cls,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        anti_forgery_checker: AntiForgeryChecker,
        **kwargs,
    ) -> "GoogleAuthConfig":
        """Any Google account can sign in. Pass `domain` to the constructor to restrict it."""
        return cls(client_id, client_secret, redirect_url, None, anti_forgery_checker, **kwargs)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleAuthConfig":
        checker = AntiForgeryChecker(
            secret_provider_from_settings(settings),
            signature_algorithm=settings.ANTI_FORGERY_ALGORITHM,
            session_id_key_name=settings.SESSION_ID_KEY_NAME,
        )
        max_auth_age = None
        if settings.GOOGLE_MAX_AUTH_AGE_SECONDS is not None:
            max_auth_age = timedelta(seconds=settings.GOOGLE_MAX_AUTH_AGE_SECONDS)
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            redirect_url=settings.GOOGLE_REDIRECT_URL,
            domain=settings.GOOGLE_DOMAIN or None,
            anti_forgery_checker=checker,
            max_auth_age=max_auth_age,
            enforce_validity=settings.GOOGLE_ENFORCE_VALIDITY,
            prompt=settings.GOOGLE_PROMPT or None,
        )


def parse_id_token(id_token: str) -> IdTokenClaims:
    """
    Read the claims of Google's identity token.

    The token comes straight from Google's token endpoint over TLS, so its
    signature is not checked again here.
    """
    try:
        return IdTokenClaims.model_validate(jwt.get_unverified_claims(id_token))
    except (JOSEError, ValidationError) as e:
        raise GoogleAuthError(AuthFailure.PROVIDER_ERROR, "Google returned an unreadable identity token") from e


class GoogleAuth:
    """Google login for one application. Share one instance per process."""

    def __init__(
        self,
        config: GoogleAuthConfig,
        client: httpx.AsyncClient,
        discovery: Optional[DiscoveryDocumentCache] = None,
    ):
        self.config = config
        self.client = client
        self.discovery = discovery or DiscoveryDocumentCache()

    async def authorization_url(
        self,
        session_id: str,
        login_hint: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """URL to redirect the browser to, with `state` bound to `session_id`."""
        config = self.config
        extras = {}
        if config.domain:
            extras["hd"] = config.domain
        if config.max_auth_age is not None:
            extras["max_auth_age"] = str(int(config.max_auth_age.total_seconds()))
        if config.prompt:
            extras["prompt"] = config.prompt
        if login_hint:
            extras["login_hint"] = login_hint

        document = await self.discovery.get(self.client)
        return prepare_grant_uri(
            document.authorization_endpoint,
            client_id=config.client_id,
            response_type="code",
            redirect_uri=config.redirect_url,
            scope=SCOPE,
            state=config.anti_forgery_checker.generate_token(session_id, now=now),
            **extras,
        )

    async def validated_user_identity(
        self,
        session: Mapping[str, Any],
        query_params: Mapping[str, str],
        now: Optional[datetime] = None,
    ) -> UserIdentity:
        """
        Handle the OAuth callback.

        Raises:
            GoogleAuthError: with the kind of the first check that failed
        """
        config = self.config
        verification = config.anti_forgery_checker.verify_request(session, query_params, now=now)
        if not verification.ok:
            raise GoogleAuthError(verification.failure, _ANTI_FORGERY_MESSAGES[verification.failure])

        code = query_params.get("code")
        if not code:
            error = query_params.get("error") or "No authorization code returned in OAuth callback"
            raise GoogleAuthError(AuthFailure.PROVIDER_ERROR, error)

        document = await self.discovery.get(self.client)
        body = await call_google(self.client, "POST", document.token_endpoint, data={
            "code": code,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "redirect_uri": config.redirect_url,
            "grant_type": "authorization_code",
        })
        try:
            token = TokenResponse.model_validate(body)
        except ValidationError as e:
            raise GoogleAuthError(AuthFailure.PROVIDER_ERROR, "Google token response is missing tokens") from e

        claims = parse_id_token(token.id_token)
        if config.domain is not None and claims.email.rsplit("@", 1)[-1] != config.domain:
            logger.warning("google_domain_mismatch", expected=config.domain)
            raise GoogleAuthError(AuthFailure.DOMAIN_MISMATCH, "Configured Google domain does not match")

        body = await call_google(
            self.client,
            "GET",
            document.userinfo_endpoint,
            headers={"Authorization": f"Bearer {token.access_token}"},
        )
        try:
            user_info = UserInfo.model_validate(body)
        except ValidationError as e:
            raise GoogleAuthError(AuthFailure.PROVIDER_ERROR, "Google returned an unreadable profile") from e

        identity = UserIdentity(
            sub=claims.sub,
            email=claims.email,
            first_name=user_info.given_name,
            last_name=user_info.family_name,
            exp=claims.exp,
            avatar_url=user_info.picture,
        )
        logger.info("google_login_verified", email_domain=identity.email_domain)
        return identity
