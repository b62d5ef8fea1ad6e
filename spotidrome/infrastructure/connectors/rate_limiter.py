"""Sliding-window rate limiter for outbound API calls.

One limiter is constructed per external API and injected into its connector,
so every call to that API in a run shares the same window.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
import time

from attrs import define, field, validators

from spotidrome.config import get_logger

logger = get_logger(__name__)


@define(slots=True)
class RateLimiter:
    """Allow at most ``max_requests`` acquisitions per trailing ``window_seconds``.

    Callers are expected to await sequentially, so no locking is done; pruning
    is idempotent and happens on every call.

    Example:
        >>> limiter = RateLimiter(max_requests=30, window_seconds=60)
        >>> async with limiter:
        ...     await client.get(url)
    """

    max_requests: int = field(default=30, validator=validators.gt(0))
    window_seconds: float = field(default=60.0, validator=validators.gt(0))
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)
    _timestamps: deque[float] = field(factory=deque, init=False, repr=False)

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        """Wait until a slot is free inside the window, then take it."""
        now = self.clock()
        self._prune(now)
        while len(self._timestamps) >= self.max_requests:
            wait = self.window_seconds - (now - self._timestamps[0])
            logger.debug(
                "Rate limit reached, waiting",
                wait_seconds=round(wait, 3),
                max_requests=self.max_requests,
            )
            await self.sleep(max(wait, 0.0))
            now = self.clock()
            self._prune(now)
        self._timestamps.append(now)

    def remaining_requests(self) -> int:
        """Slots still free in the current window."""
        self._prune(self.clock())
        return max(0, self.max_requests - len(self._timestamps))

    def reset_time(self) -> float:
        """Seconds until the oldest request leaves the window (0 if none)."""
        now = self.clock()
        self._prune(now)
        if not self._timestamps:
            return 0.0
        return max(0.0, self.window_seconds - (now - self._timestamps[0]))

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None
