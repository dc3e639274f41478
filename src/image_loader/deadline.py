"""
Cancellable deadlines for blocking store calls.

Every store call takes a Deadline so that an external timeout aborts the
workflow promptly instead of hanging on daemon I/O.
"""
from __future__ import annotations

import math
import time
from typing import Optional

from .errors import StoreTimeout

__all__ = ["Deadline"]


class Deadline:
    """
    A monotonic point in time after which store calls must not start.

    A deadline without an expiry never times out but can still be
    cancelled. Cancellation is sticky: once cancelled, every subsequent
    check() raises.
    """

    def __init__(self, expires_at: Optional[float] = None):
        self._expires_at = expires_at
        self._cancelled = False

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        """Create a deadline that expires `seconds` from now."""
        if seconds <= 0:
            raise ValueError(f"deadline must be positive, got {seconds}")
        return cls(time.monotonic() + seconds)

    @classmethod
    def none(cls) -> Deadline:
        """Create a deadline that never expires."""
        return cls(None)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        if self._expires_at is None:
            return False
        return time.monotonic() >= self._expires_at

    def remaining(self) -> float:
        """Seconds left before expiry, `math.inf` when there is no expiry."""
        if self._cancelled:
            return 0.0
        if self._expires_at is None:
            return math.inf
        return max(0.0, self._expires_at - time.monotonic())

    def timeout(self) -> Optional[float]:
        """Remaining time as an httpx-style timeout (None means unbounded)."""
        remaining = self.remaining()
        return None if remaining == math.inf else remaining

    def check(self, operation: str) -> None:
        """
        Raise StoreTimeout if the deadline has passed.

        Args:
            operation: Description of the call about to start, for the message
        """
        if self._cancelled:
            raise StoreTimeout(f"{operation}: cancelled")
        if self.expired:
            raise StoreTimeout(f"{operation}: deadline exceeded")

    def __repr__(self) -> str:
        if self._cancelled:
            return "Deadline(cancelled)"
        if self._expires_at is None:
            return "Deadline(none)"
        return f"Deadline(remaining={self.remaining():.3f}s)"
