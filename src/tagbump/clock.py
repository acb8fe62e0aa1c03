"""Time utilities with injected clock support."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable


TimeFn = Callable[[], float]


@dataclass(frozen=True)
class Clock:
    """Clock wrapper to avoid direct wall-clock usage."""

    time_fn: TimeFn
    monotonic_fn: TimeFn

    def now(self) -> datetime:
        """Return timezone-aware datetime in UTC."""
        return datetime.fromtimestamp(self.time_fn(), tz=timezone.utc)

    def monotonic_ms(self) -> int:
        """Return monotonic milliseconds for duration tracking."""
        return int(self.monotonic_fn() * 1000)


def default_clock() -> Clock:
    """Create a default clock with real time providers."""
    return Clock(time_fn=time.time, monotonic_fn=time.perf_counter)
