"""
Pydantic models for Google's OpenID Connect responses and the verified user.
"""
import json
from datetime import datetime, timezone
from typing import Any, ClassVar, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError


class DiscoveryDocument(BaseModel):
    """The subset of Google's openid-configuration we use."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str


class TokenResponse(BaseModel):
    """Token endpoint response from the authorization code exchange."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    id_token: str
    expires_in: Optional[int] = None
    token_type: Optional[str] = None


class IdTokenClaims(BaseModel):
    """Claims read from Google's identity token."""
    model_config = ConfigDict(extra="ignore")

    sub: str
    email: str
    exp: int


class UserInfo(BaseModel):
    """Profile fields from the userinfo endpoint."""
    model_config = ConfigDict(extra="ignore")

    given_name: Optional[str] = None
    family_name: Optional[str] = None
    picture: Optional[str] = None


class UserIdentity(BaseModel):
    """A fully validated Google user."""
    model_config = ConfigDict(frozen=True)

    SESSION_KEY: ClassVar[str] = "identity"

    sub: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    exp: int
    avatar_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(n for n in (self.first_name, self.last_name) if n)

    @property
    def email_domain(self) -> str:
        return self.email.rsplit("@", 1)[-1]

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """True while Google's identity token has not expired."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.timestamp() < self.exp

    def to_session(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_session(cls, session: Mapping[str, Any]) -> Optional["UserIdentity"]:
        """Read the identity stored by a previous login, if there is a usable one."""
        raw = session.get(cls.SESSION_KEY)
        if not raw:
            return None
        try:
            return cls.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            return None
