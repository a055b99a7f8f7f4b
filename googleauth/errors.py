"""
Failure kinds for the Google login flow.

Anti-forgery checks report a kind through VerificationResult; the callback
validator raises GoogleAuthError carrying the same kind so the host
application can tell a forged or stale callback apart from a Google outage.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AuthFailure(str, Enum):
    """Every way a login attempt can fail."""

    NO_SESSION_ID = "no_session_id"
    NO_STATE_PARAMETER = "no_state_parameter"
    MALFORMED_TOKEN = "malformed_token"
    INVALID_SIGNATURE = "invalid_signature"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    EXPIRED = "expired"
    SESSION_MISMATCH = "session_mismatch"
    DOMAIN_MISMATCH = "domain_mismatch"
    PROVIDER_ERROR = "provider_error"
    NETWORK_FAILURE = "network_failure"

    @property
    def is_anti_forgery(self) -> bool:
        return self in ANTI_FORGERY_FAILURES


ANTI_FORGERY_FAILURES = frozenset({
    AuthFailure.NO_SESSION_ID,
    AuthFailure.NO_STATE_PARAMETER,
    AuthFailure.MALFORMED_TOKEN,
    AuthFailure.INVALID_SIGNATURE,
    AuthFailure.ALGORITHM_MISMATCH,
    AuthFailure.EXPIRED,
    AuthFailure.SESSION_MISMATCH,
})


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of an anti-forgery check: success, or the first failed step."""

    failure: Optional[AuthFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls) -> "VerificationResult":
        return cls()

    @classmethod
    def failed(cls, failure: AuthFailure) -> "VerificationResult":
        return cls(failure=failure)


class GoogleAuthError(Exception):
    """Raised when a login callback cannot produce a verified identity."""

    def __init__(self, kind: AuthFailure, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"GoogleAuthError({self.kind.value!r}, {self.message!r})"
