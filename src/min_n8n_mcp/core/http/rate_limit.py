"""Bounded-concurrency rate limiter with a bounded FIFO queue.

One limiter is shared by every call made through a client. It admits at most
``max_concurrent`` operations at once, spaces successive dispatches by at
least ``min_interval`` seconds, and holds at most ``max_queue_depth`` waiting
operations. When the queue is full the overflow policy either rejects the new
submission or evicts the oldest waiter; either way the refused caller gets a
:class:`QueueOverflowError` instead of hanging.

All limiter state (running count, queue, next dispatch time, counters) is
read and written only under ``self._lock``. The limiter must be used from a
single event loop.
"""

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from min_n8n_mcp.core.errors import QueueOverflowError
from min_n8n_mcp.core.http.models import OverflowPolicy, RateLimiterConfig, SleepFunc
from min_n8n_mcp.core.observability import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LimiterStatus:
    """Point-in-time snapshot of a limiter, for observability."""

    running: int
    queued: int
    max_concurrent: int
    max_queue_depth: int
    dispatched: int
    rejected: int


@dataclass(eq=False)
class _Waiter:
    admitted: "asyncio.Future[float]"
    enqueued_at: float


class RateLimiter:
    """Admission control shared by all calls on one client.

    Example:
        >>> limiter = RateLimiter(RateLimiterConfig(max_concurrent=2, min_interval=0.25))
        >>> result = await limiter.schedule(lambda: transport.execute(request))
    """

    def __init__(
        self,
        config: Optional[RateLimiterConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep_func: Optional[SleepFunc] = None,
    ) -> None:
        self.config = config or RateLimiterConfig()
        self._clock = clock
        self._sleep = sleep_func or asyncio.sleep
        self._lock = threading.Lock()
        self._queue: Deque[_Waiter] = deque()
        self._running = 0
        self._next_dispatch_at = 0.0
        self._dispatched = 0
        self._rejected = 0

    def status(self) -> LimiterStatus:
        with self._lock:
            return LimiterStatus(
                running=self._running,
                queued=len(self._queue),
                max_concurrent=self.config.max_concurrent,
                max_queue_depth=self.config.max_queue_depth,
                dispatched=self._dispatched,
                rejected=self._rejected,
            )

    async def schedule(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run *operation* once admitted and return its result.

        Raises:
            QueueOverflowError: If the queue was full (or this waiter was
                evicted) before the operation could be dispatched.
            Exception: Whatever *operation* raises, unchanged.
        """
        waiter: Optional[_Waiter] = None
        dispatch_at = 0.0

        with self._lock:
            if self._running < self.config.max_concurrent and not self._queue:
                self._running += 1
                dispatch_at = self._reserve_dispatch_locked()
            else:
                waiter = self._enqueue_locked()

        if waiter is not None:
            try:
                dispatch_at = await waiter.admitted
            except asyncio.CancelledError:
                self._abandon(waiter)
                raise

        try:
            delay = dispatch_at - self._clock()
            if delay > 0:
                await self._sleep(delay)
            return await operation()
        finally:
            self._release()

    def _reserve_dispatch_locked(self) -> float:
        """Claim the next dispatch slot; caller holds the lock."""
        now = self._clock()
        dispatch_at = max(now, self._next_dispatch_at)
        self._next_dispatch_at = dispatch_at + self.config.min_interval
        self._dispatched += 1
        log_event(
            logger,
            logging.DEBUG,
            "Rate limiter admitted operation",
            running=self._running,
            queued=len(self._queue),
            pacing_delay_ms=int((dispatch_at - now) * 1000),
        )
        return dispatch_at

    def _enqueue_locked(self) -> _Waiter:
        """Queue a new waiter, applying the overflow policy; caller holds the lock."""
        max_depth = self.config.max_queue_depth
        if len(self._queue) >= max_depth:
            if self.config.overflow_policy is OverflowPolicy.REJECT_OLDEST and self._queue:
                evicted = self._queue.popleft()
                self._rejected += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "Rate limiter queue full, evicted oldest queued operation",
                    max_queue_depth=max_depth,
                    running=self._running,
                    waited_ms=int((self._clock() - evicted.enqueued_at) * 1000),
                )
                if not evicted.admitted.done():
                    evicted.admitted.set_exception(
                        QueueOverflowError(
                            f"Evicted from rate limiter queue (max depth {max_depth})",
                            reason="evicted",
                            max_queue_depth=max_depth,
                        )
                    )
            else:
                self._rejected += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "Rate limiter queue full, rejected new operation",
                    max_queue_depth=max_depth,
                    running=self._running,
                )
                raise QueueOverflowError(
                    f"Rate limiter queue is full (max depth {max_depth})",
                    reason="rejected",
                    max_queue_depth=max_depth,
                )

        waiter = _Waiter(
            admitted=asyncio.get_running_loop().create_future(),
            enqueued_at=self._clock(),
        )
        self._queue.append(waiter)
        log_event(
            logger,
            logging.DEBUG,
            "Rate limiter queued operation",
            running=self._running,
            queued=len(self._queue),
        )
        return waiter

    def _admit_waiting_locked(self) -> None:
        while self._running < self.config.max_concurrent and self._queue:
            waiter = self._queue.popleft()
            if waiter.admitted.done():
                continue
            self._running += 1
            waiter.admitted.set_result(self._reserve_dispatch_locked())

    def _release(self) -> None:
        with self._lock:
            self._running -= 1
            self._admit_waiting_locked()
            if self._running == 0 and not self._queue:
                log_event(
                    logger,
                    logging.DEBUG,
                    "Rate limiter idle",
                    dispatched=self._dispatched,
                    rejected=self._rejected,
                )

    def _abandon(self, waiter: _Waiter) -> None:
        """Clean up after a cancelled waiter without disturbing other callers."""
        with self._lock:
            try:
                self._queue.remove(waiter)
                return
            except ValueError:
                pass
        future = waiter.admitted
        # Admitted just before the cancellation landed: hand the slot back
        if future.done() and not future.cancelled() and future.exception() is None:
            self._release()
