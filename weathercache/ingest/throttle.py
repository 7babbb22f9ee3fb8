"""Minimum-spacing throttle for outbound geocoding requests.

Nominatim's usage policy allows at most one request per second, so every
search funnels through one shared RequestThrottle.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 1.0


class RequestThrottle:
    """Grants acquisitions at least ``min_interval`` seconds apart.

    Args:
        min_interval: Minimum spacing between the starts of two grants
        clock: Monotonic clock in seconds
        sleep: Coroutine used to wait; injected together with ``clock`` in tests
    """

    def __init__(
        self,
        min_interval: float = MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_grant: float | None = None
        # asyncio.Lock wakes waiters in call order
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """Wait out the interval since the previous grant. Returns the grant time."""
        async with self._lock:
            if self._last_grant is not None:
                wait = self._last_grant + self.min_interval - self._clock()
                if wait > 0:
                    logger.debug("Throttle waiting %.3fs", wait)
                    await self._sleep(wait)
            self._last_grant = self._clock()
            return self._last_grant

    @property
    def last_grant(self) -> float | None:
        return self._last_grant
