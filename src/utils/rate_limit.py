"""
Fixed-Interval Rate Limiting

Provider quotas are enforced by spacing successive requests at least
``min_interval`` seconds apart and by a hard cap on calls per gate. Clock and
sleep are injectable so the policy is testable without real waiting.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimitExhausted(Exception):
    """Raised when a gate's hard call cap has been reached."""

    def __init__(self, name: str, max_calls: int):
        super().__init__(f"{name}: call cap of {max_calls} reached")
        self.name = name
        self.max_calls = max_calls


class FixedIntervalGate:
    """
    Serializes callers and enforces a minimum delay between them.

    Usage:
        gate = FixedIntervalGate(min_interval=0.2, max_calls=30, name="rank-lookup")
        for keyword in keywords:
            async with gate:
                await lookup(keyword)
    """

    def __init__(
        self,
        min_interval: float,
        max_calls: Optional[int] = None,
        name: str = "gate",
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            min_interval: Minimum seconds between the start of successive calls
            max_calls: Hard cap on calls through this gate (None = unlimited)
            name: Label used in logs and errors
            clock: Monotonic time source in seconds
            sleep: Async sleep function
        """
        self.min_interval = max(0.0, min_interval)
        self.max_calls = max_calls
        self.name = name
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None
        self.calls = 0
        self.total_waited = 0.0

    @property
    def remaining(self) -> Optional[int]:
        if self.max_calls is None:
            return None
        return max(0, self.max_calls - self.calls)

    def has_capacity(self) -> bool:
        return self.max_calls is None or self.calls < self.max_calls

    async def acquire(self) -> None:
        """
        Wait until the next call may start.

        Raises:
            RateLimitExhausted: The gate's call cap has been reached
        """
        async with self._lock:
            if not self.has_capacity():
                raise RateLimitExhausted(self.name, self.max_calls)

            now = self._clock()
            if self._last_call is not None:
                wait = self._last_call + self.min_interval - now
                if wait > 0:
                    logger.debug(f"{self.name}: waiting {wait:.3f}s")
                    await self._sleep(wait)
                    self.total_waited += wait
                    now = self._clock()

            self._last_call = now
            self.calls += 1

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False
