"""
Per-browser session identifiers that anti-forgery tokens are bound to.

The id is read from the session if present, otherwise a new one is minted
and the caller must write it back before responding. Two concurrent first
requests from the same browser can each mint a different id; whichever
cookie lands last wins, and a login started under the other id will fail
its callback with a session mismatch.
"""
import secrets
from typing import Any, Mapping, Tuple

SESSION_ID_BITS = 130
_BASE32_DIGITS = "0123456789abcdefghijklmnopqrstuv"


def _to_base32(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 32)
        digits.append(_BASE32_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_session_id() -> str:
    """A 130-bit random number rendered in base 32 (about 26 characters)."""
    return _to_base32(secrets.randbits(SESSION_ID_BITS))


def ensure_session_id(session: Mapping[str, Any], key_name: str) -> Tuple[str, bool]:
    """
    Return (session_id, needs_store).

    `needs_store` is True when the id was just generated and must be saved
    under `key_name` in the caller's session.
    """
    existing = session.get(key_name)
    if isinstance(existing, str) and existing:
        return existing, False
    return generate_session_id(), True
