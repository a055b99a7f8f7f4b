"""
Anti-forgery tokens for the OAuth `state` parameter.

When Google redirects back to us we must know the callback ends a login we
started for this browser, not a forged redirect. Rather than storing a nonce,
the state carries a short-lived JWT holding the browser's session id, signed
with the current secret. This copes with concurrent logins from one session
and needs no server-side storage.

The claim name follows draft-bradley-oauth-jwt-encoded-state ("rfp",
request forgery protection).
"""
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from jose import jwk, jwt
from jose.constants import ALGORITHMS
from jose.exceptions import JOSEError
from jose.utils import base64url_decode

from googleauth.errors import AuthFailure, VerificationResult
from googleauth.logging_config import get_logger
from googleauth.services.secret_rotation import SnapshotProvider
from googleauth.services.session_ids import ensure_session_id

SESSION_ID_CLAIM = "rfp"
TOKEN_LIFETIME = timedelta(seconds=60)
DEFAULT_SESSION_ID_KEY_NAME = "googleauth-session-id"

logger = get_logger(component="anti_forgery")


def _utc(now: Optional[datetime]) -> datetime:
    """The current time, or `now` with a naive value read as UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


@dataclass(frozen=True)
class _SignatureCheck:
    """Result of checking the token against one candidate secret."""
    failure: Optional[AuthFailure]
    # False only for a plain mismatch, which just means "not this key".
    conclusive: bool = True


class AntiForgeryChecker:
    """Issues and verifies signed state tokens bound to a session id."""

    def __init__(
        self,
        secrets_provider: SnapshotProvider,
        signature_algorithm: str = ALGORITHMS.HS256,
        session_id_key_name: str = DEFAULT_SESSION_ID_KEY_NAME,
    ):
        if signature_algorithm not in ALGORITHMS.HMAC:
            raise ValueError(f"unsupported anti-forgery signature algorithm: {signature_algorithm}")
        self.secrets_provider = secrets_provider
        self.signature_algorithm = signature_algorithm
        self.session_id_key_name = session_id_key_name

    def ensure_session_id(self, session: Mapping[str, Any]) -> tuple[str, bool]:
        return ensure_session_id(session, self.session_id_key_name)

    def generate_token(self, session_id: str, now: Optional[datetime] = None) -> str:
        """Sign a state token for `session_id`, valid for 60 seconds from `now`."""
        now = _utc(now)
        claims = {
            "exp": int(now.timestamp()) + int(TOKEN_LIFETIME.total_seconds()),
            SESSION_ID_CLAIM: session_id,
        }
        active = self.secrets_provider.snapshot().active
        return jwt.encode(claims, active, algorithm=self.signature_algorithm)

    def verify_token(
        self,
        token: str,
        expected_session_id: str,
        now: Optional[datetime] = None,
    ) -> VerificationResult:
        """
        Check a state token against the session id from the caller's session.

        Steps stop at the first failure: parse, signature (active secret, then
        retired ones), algorithm, expiry, session id.
        """
        now = _utc(now)

        # compact JWS segments are unpadded base64url
        if "=" in token:
            return self._reject(AuthFailure.MALFORMED_TOKEN)

        try:
            header = jwt.get_unverified_header(token)
            claims = jwt.get_unverified_claims(token)
        except JOSEError:
            return self._reject(AuthFailure.MALFORMED_TOKEN)

        algorithm = header.get("alg")
        if not isinstance(algorithm, str):
            return self._reject(AuthFailure.MALFORMED_TOKEN)

        signing_input, _, encoded_signature = token.rpartition(".")
        signature = base64url_decode(encoded_signature.encode("utf-8"))

        def check(secret: bytes) -> _SignatureCheck:
            return self._check_signature(signing_input.encode("utf-8"), signature, algorithm, secret)

        snapshot = self.secrets_provider.snapshot()
        outcome = snapshot.decode(check, lambda result: result.conclusive)
        if outcome is None:
            return self._reject(AuthFailure.INVALID_SIGNATURE)
        if outcome.failure is not None:
            return self._reject(outcome.failure)

        if algorithm != self.signature_algorithm:
            return self._reject(AuthFailure.ALGORITHM_MISMATCH)

        expiry = claims.get("exp")
        if isinstance(expiry, bool) or not isinstance(expiry, (int, float)):
            return self._reject(AuthFailure.MALFORMED_TOKEN)
        if expiry < int(now.timestamp()):
            return self._reject(AuthFailure.EXPIRED)

        token_session_id = claims.get(SESSION_ID_CLAIM)
        if not isinstance(token_session_id, str) or not hmac.compare_digest(
            token_session_id.encode("utf-8"), expected_session_id.encode("utf-8")
        ):
            return self._reject(AuthFailure.SESSION_MISMATCH)

        return VerificationResult.success()

    def verify_request(
        self,
        session: Mapping[str, Any],
        query_params: Mapping[str, str],
        now: Optional[datetime] = None,
    ) -> VerificationResult:
        """Verify an OAuth callback: session id present, state present, state valid."""
        session_id = session.get(self.session_id_key_name)
        if not isinstance(session_id, str) or not session_id:
            return self._reject(AuthFailure.NO_SESSION_ID)

        state = query_params.get("state")
        if not state:
            return self._reject(AuthFailure.NO_STATE_PARAMETER)

        return self.verify_token(state, session_id, now=now)

    @staticmethod
    def _check_signature(
        signing_input: bytes,
        signature: bytes,
        algorithm: str,
        secret: bytes,
    ) -> _SignatureCheck:
        if algorithm not in ALGORITHMS.HMAC:
            # Not something a shared secret could have signed (e.g. "none" or RS256).
            return _SignatureCheck(AuthFailure.ALGORITHM_MISMATCH)
        try:
            key = jwk.construct(secret, algorithm)
        except JOSEError:
            logger.error("anti_forgery_secret_unusable", algorithm=algorithm)
            return _SignatureCheck(AuthFailure.INVALID_SIGNATURE)
        if key.verify(signing_input, signature):
            return _SignatureCheck(None)
        return _SignatureCheck(AuthFailure.INVALID_SIGNATURE, conclusive=False)

    @staticmethod
    def _reject(failure: AuthFailure) -> VerificationResult:
        logger.warning("anti_forgery_rejected", failure=failure.value)
        return VerificationResult.failed(failure)
