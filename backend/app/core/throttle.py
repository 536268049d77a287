import asyncio
import time


class FixedIntervalThrottle:
    """Space out calls to an external API by a fixed minimum interval.

    Each ``await throttle()`` returns no sooner than ``interval`` seconds
    after the previous one returned.  An interval of 0 never waits.
    """

    def __init__(self, interval: float):
        self.interval = max(0.0, interval)
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last is not None and self.interval > 0:
                wait = self._last + self.interval - time.monotonic()
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last = time.monotonic()

    async def __call__(self) -> None:
        await self.acquire()
