"""Monotonic deadline shared by every datastore call of one write."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from redis_output.errors import DeadlineExceeded


@dataclass
class Deadline:
    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    @classmethod
    def after_ms(cls, timeout_ms: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(expires_at=clock() + timeout_ms / 1000.0, clock=clock)

    def remaining(self) -> float:
        """Seconds left before expiry, never negative."""
        return max(0.0, self.expires_at - self.clock())

    @property
    def expired(self) -> bool:
        return self.clock() >= self.expires_at

    def check(self) -> None:
        now = self.clock()
        if now >= self.expires_at:
            raise DeadlineExceeded((now - self.expires_at) * 1000.0)
