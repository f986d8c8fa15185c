import asyncio
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger


class ScrapeAdmissionController:
    """Bounded-concurrency gate in front of one metered scraping backend.

    At most ``max_concurrent`` callers hold a slot at any instant. Waiters are
    served strictly FIFO: ``release()`` hands the freed slot directly to the
    longest-waiting caller instead of decrementing the counter, so a newcomer
    can never overtake the queue.

    Construct one instance per backend and pass the SAME instance to every
    client that shares the backend's concurrency budget.
    """

    def __init__(self, max_concurrent: int = 4) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self._max = max_concurrent
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def max_concurrent(self) -> int:
        return self._max

    @property
    def in_flight(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        if self._active < self._max and not self._waiters:
            self._active += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        logger.debug(f"[ADMISSION] Queued, {self._active}/{self._max} in flight, {len(self._waiters)} waiting")
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Slot was handed over just before cancellation landed: pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            raise

    def release(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # Slot transfers to the waiter; in-flight count is unchanged.
                fut.set_result(None)
                return
        if self._active <= 0:
            raise RuntimeError("release() called without a matching acquire()")
        self._active -= 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Scoped acquisition: the slot is released on every exit path."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()
