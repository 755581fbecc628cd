"""
Sliding-window rate limiter for outbound Google API calls.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Admission controller bounding calls per rolling time window.

    At most ``max_calls`` admissions happen within any ``window_seconds``.
    Admission checks are serialized by an asyncio lock, so one instance can be
    shared by concurrent operations on the same event loop.
    """

    def __init__(
        self,
        max_calls: int = 60,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize rate limiter.

        Args:
            max_calls: Maximum admissions per window
            window_seconds: Window length in seconds
            clock: Monotonic clock returning seconds
            sleep: Coroutine used to suspend the caller
        """
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._calls: Deque[float] = deque()
        self._lock: Optional[asyncio.Lock] = None

    @classmethod
    def from_config(cls, config) -> "RateLimiter":
        """Create a limiter from SheetsConfig."""
        return cls(
            max_calls=config.rate_limit_max_calls,
            window_seconds=config.rate_limit_window_seconds
        )

    @property
    def pending_calls(self) -> int:
        """Number of admissions still inside the current window."""
        self._purge(self._clock())
        return len(self._calls)

    def _purge(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    async def admit(self) -> None:
        """Wait until a call is allowed, then record it."""
        # Created lazily so the lock binds to the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            while True:
                now = self._clock()
                self._purge(now)

                if len(self._calls) < self.max_calls:
                    self._calls.append(now)
                    return

                wait_time = self.window_seconds - (now - self._calls[0])
                if wait_time <= 0:
                    self._calls.append(now)
                    return

                logger.debug(
                    f"Rate limit reached ({self.max_calls} calls per "
                    f"{self.window_seconds}s), waiting {wait_time:.3f}s"
                )
                await self._sleep(wait_time)

    def reset(self) -> None:
        """Forget all recorded calls."""
        self._calls.clear()
