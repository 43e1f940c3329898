"""In-memory fixed-window rate limiter for public submissions.

Each key (client address) gets a counter that resets when its window
expires. The number of keys tracked at once is bounded; when the bound is
exceeded the least recently seen key is evicted.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable


@dataclass
class Window:
    """Counter for a single key."""

    count: int
    started_at: float


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counters keyed by client address."""

    def __init__(
        self,
        max_hits: int = 10,
        window_seconds: float = 60.0,
        max_keys: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            max_hits: Accepted operations per key per window.
            window_seconds: Window length in seconds.
            max_keys: Maximum number of keys tracked concurrently.
            clock: Monotonic time source, injectable for tests.
        """
        if max_hits < 1 or window_seconds <= 0 or max_keys < 1:
            raise ValueError("max_hits, window_seconds and max_keys must be positive")
        self.max_hits = max_hits
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._windows: "OrderedDict[str, Window]" = OrderedDict()
        self._lock = Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """Count one operation for `key` if the current window has room.

        A rejected hit does not consume quota.
        """
        now = self._clock()

        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = Window(count=0, started_at=now)
                self._windows[key] = window
            self._windows.move_to_end(key)

            while len(self._windows) > self.max_keys:
                self._windows.popitem(last=False)

            reset_in = window.started_at + self.window_seconds - now
            if window.count >= self.max_hits:
                return RateLimitDecision(allowed=False, remaining=0, retry_after=reset_in)

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self.max_hits - window.count,
                retry_after=0.0,
            )

    def tracked_keys(self) -> list[str]:
        """Keys currently held, least recently seen first."""
        with self._lock:
            return list(self._windows.keys())

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
