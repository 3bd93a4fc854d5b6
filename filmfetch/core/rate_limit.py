import asyncio
import time
from collections.abc import Awaitable, Callable


class TokenBucketLimiter:
    """Shared outbound request limiter.

    Every upstream request takes one token. Tokens refill continuously at
    ``rate_per_second`` up to ``capacity``, so short bursts are allowed while the
    aggregate rate stays bounded. A rate of 0 disables limiting.
    """

    def __init__(
        self,
        rate_per_second: float,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.rate_per_second = rate_per_second
        self.capacity = max(capacity, 1)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(self.capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.rate_per_second > 0

    def _refill(self, now: float) -> None:
        elapsed = max(now - self._updated_at, 0.0)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate_per_second)
        self._updated_at = now

    async def acquire(self) -> None:
        if not self.enabled:
            return
        async with self._lock:
            while True:
                self._refill(self._clock())
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                await self._sleep((1.0 - self._tokens) / self.rate_per_second)
