"""
Signing secret snapshots.

A snapshot holds the secret used for new signatures plus the secrets that
are still accepted while a rotation completes.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, TypeVar

T = TypeVar("T")


def _as_bytes(secret) -> bytes:
    if isinstance(secret, bytes):
        return secret
    return secret.encode("utf-8")


@dataclass(frozen=True)
class SecretSnapshot:
    """Secrets valid at one instant. Fetch a new one for every operation."""

    active: bytes
    retired: tuple[bytes, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.active:
            raise ValueError("active secret must not be empty")
        object.__setattr__(self, "active", _as_bytes(self.active))
        object.__setattr__(self, "retired", tuple(_as_bytes(s) for s in self.retired))

    def candidates(self) -> Iterator[bytes]:
        """Active secret first, then retired secrets in their given order."""
        yield self.active
        yield from self.retired

    def decode(
        self,
        attempt: Callable[[bytes], T],
        conclusive: Callable[[T], bool],
    ) -> Optional[T]:
        """
        Run `attempt` against each candidate secret.

        Returns the first outcome that `conclusive` accepts. An inconclusive
        outcome (e.g. a signature made with some other key) moves on to the
        next candidate. Returns None if no candidate is conclusive.
        """
        for secret in self.candidates():
            outcome = attempt(secret)
            if conclusive(outcome):
                return outcome
        return None
