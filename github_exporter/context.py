from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import FetchTimeoutError


@dataclass
class RefreshContext:
    """Deadline and cancellation shared by every task of one refresh cycle."""

    deadline: Optional[float] = None
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: Optional[float]) -> "RefreshContext":
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise FetchTimeoutError once the context is cancelled or expired."""
        if self.cancelled:
            raise FetchTimeoutError("refresh cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise FetchTimeoutError("refresh deadline exceeded")

    def timeout(self, default: float) -> float:
        """Clamp a per-request timeout to the time left."""
        self.check()
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)
