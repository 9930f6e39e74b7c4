"""Caller-supplied deadlines for storage calls."""

from __future__ import annotations

import time
from dataclasses import dataclass

from pvzctl.infrastructure.errors import StorageError, StorageErrorKind


@dataclass(frozen=True)
class Deadline:
    """An absolute point on the monotonic clock after which work must stop."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self, operation: str) -> None:
        """Raise a TIMEOUT :class:`StorageError` if the deadline has passed."""
        if self.expired:
            raise StorageError(StorageErrorKind.TIMEOUT, operation, "deadline exceeded")
