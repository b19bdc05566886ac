"""Request pacing, retry and backoff policies for exchange calls."""

import asyncio
import random
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

from boostedge.common.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class TokenBucket:
    """Async token bucket pacing exchange requests.

    Holds up to ``capacity`` tokens, refilled at ``rate`` tokens per second.
    Every request takes one token. When the bucket is empty the balance goes
    negative, reserving a later token, and the caller sleeps outside the lock
    until it accrues.
    """

    def __init__(self, rate: float = 5.0, capacity: int | None = None):
        self.rate = rate
        self.capacity = capacity if capacity is not None else max(1, int(rate))
        self._tokens = float(self.capacity)
        self._stamp = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.capacity, self._tokens + (now - self._stamp) * self.rate)
        self._stamp = now

    async def acquire(self) -> float:
        """Take one token, sleeping until one is available.

        Returns:
            Seconds slept.
        """
        async with self._lock:
            self._refill()
            self._tokens -= 1.0
            if self._tokens >= 0.0:
                return 0.0
            # Negative balance reserves future tokens, so waiters queue up
            wait = -self._tokens / self.rate

        await asyncio.sleep(wait)
        return wait


@dataclass(frozen=True)
class RetryPolicy:
    """When and how long to wait before re-sending a failed RPC call.

    Network errors and the statuses in ``retry_statuses`` are retried with
    exponential backoff; ``jitter`` spreads each delay by up to that fraction
    either way.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    factor: float = 2.0
    jitter: float = 0.25
    retry_statuses: frozenset[int] = field(default=RETRYABLE_STATUSES)

    @property
    def attempts(self) -> int:
        return self.max_retries + 1

    def retries_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses

    def delay(self, retry: int) -> float:
        """Seconds to sleep before retry number ``retry`` (0-indexed)."""
        delay = min(self.base_delay * self.factor**retry, self.max_delay)
        if self.jitter:
            delay *= 1.0 + random.uniform(-self.jitter, self.jitter)
        return delay


class SplitBackoff:
    """Growing delay used between oversized-request splits.

    Starts at ``base`` seconds and grows by ``factor`` plus up to ``jitter``
    seconds after each use, capped at ``max_delay``.
    """

    def __init__(
        self,
        base: float = 0.2,
        max_delay: float = 2.0,
        factor: float = 1.5,
        jitter: float = 0.05,
    ):
        self.base = base
        self.max_delay = max_delay
        self.factor = factor
        self.jitter = jitter
        self._delay = base

    @property
    def current(self) -> float:
        """Delay the next ``wait`` will sleep for."""
        return self._delay

    async def wait(self) -> float:
        """Sleep for the current delay, then grow it.

        Returns:
            Seconds slept.
        """
        delay = self._delay
        await asyncio.sleep(delay)
        self._delay = min(self._delay * self.factor + random.random() * self.jitter, self.max_delay)
        return delay


class RpcCallLog:
    """Logs exchange RPC calls and keeps recent latencies per method."""

    def __init__(self, name: str = "exchange_api", window: int = 100):
        self.logger = get_logger(name)
        self._latencies: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=window))

    def started(self, method: str, params: dict[str, Any] | None = None) -> float:
        """Log an outgoing call.

        Returns:
            Monotonic start time, passed back to ``finished``.
        """
        self.logger.debug("rpc_call", method=method, params=params)
        return time.monotonic()

    def finished(
        self,
        method: str,
        status_code: int,
        started: float,
        error: str | None = None,
    ) -> None:
        duration_ms = round((time.monotonic() - started) * 1000, 2)
        self._latencies[method].append(duration_ms)

        if error is None and status_code < 400:
            self.logger.debug(
                "rpc_result", method=method, status_code=status_code, duration_ms=duration_ms
            )
            return
        self.logger.warning(
            "rpc_failed",
            method=method,
            status_code=status_code,
            duration_ms=duration_ms,
            error=error,
        )

    def retrying(self, method: str, retry: int, delay: float, reason: str) -> None:
        self.logger.info(
            "rpc_retry",
            method=method,
            retry=retry,
            delay_seconds=round(delay, 2),
            reason=reason,
        )

    def stats(self) -> dict[str, dict[str, float]]:
        """Call count and latency summary per RPC method."""
        return {
            method: {
                "count": len(times),
                "avg_ms": round(sum(times) / len(times), 2),
                "max_ms": max(times),
            }
            for method, times in self._latencies.items()
            if times
        }
