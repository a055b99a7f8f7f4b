"""
Sources of signing secrets.

Anything with a `snapshot()` method returning a SecretSnapshot can back the
anti-forgery checker, so hosts can plug in their own key management. The
adapters here cover a single fixed secret, a scheduled two-secret rollover,
and secrets listed in configuration.
"""
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Sequence, runtime_checkable

from googleauth.config import Settings
from googleauth.models.secrets import SecretSnapshot

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class SnapshotProvider(Protocol):
    """Supplies the currently valid secrets. Must be cheap and thread-safe."""

    def snapshot(self) -> SecretSnapshot:
        ...


class InitialSecret:
    """A single secret with nothing retired, for deployments that never rotated."""

    def __init__(self, secret: str | bytes):
        self._snapshot = SecretSnapshot(active=secret)

    def snapshot(self) -> SecretSnapshot:
        return self._snapshot


class StaticSecrets:
    """A fixed active secret plus retired secrets, e.g. read from configuration."""

    def __init__(self, active: str | bytes, retired: Sequence[str | bytes] = ()):
        self._snapshot = SecretSnapshot(active=active, retired=tuple(retired))

    def snapshot(self) -> SecretSnapshot:
        return self._snapshot


class TransitioningSecret:
    """
    Scheduled rollover from `old` to `new`.

    Before the overlap starts the old secret signs and the new one is
    already accepted, so instances that switch early are still trusted.
    During the overlap the new secret signs and the old one is retired.
    After the overlap only the new secret is valid.
    """

    def __init__(
        self,
        old: str | bytes,
        new: str | bytes,
        overlap_start: datetime,
        overlap_end: datetime,
        clock: Optional[Clock] = None,
    ):
        if overlap_end <= overlap_start:
            raise ValueError("overlap_end must be after overlap_start")
        self._upcoming = SecretSnapshot(active=old, retired=(new,))
        self._overlapping = SecretSnapshot(active=new, retired=(old,))
        self._completed = SecretSnapshot(active=new)
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        self._clock = clock or utc_now

    def snapshot(self) -> SecretSnapshot:
        now = self._clock()
        if now < self.overlap_start:
            return self._upcoming
        if now < self.overlap_end:
            return self._overlapping
        return self._completed


def secret_provider_from_settings(settings: Settings) -> SnapshotProvider:
    """Build the provider described by ANTI_FORGERY_SECRET and ANTI_FORGERY_RETIRED_SECRETS."""
    retired = settings.retired_secrets
    if not retired:
        return InitialSecret(settings.ANTI_FORGERY_SECRET)
    return StaticSecrets(settings.ANTI_FORGERY_SECRET, retired)
