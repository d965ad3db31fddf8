"""Exponential backoff with global and per-target counters."""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pushline.models.response import (
    ErrorKind,
    ErrorResponse,
    Response,
    ResponseType,
    UnavailableResponse,
)

logger = logging.getLogger(__name__)

GLOBAL_TYPES = (ResponseType.SERVICE_UNAVAILABLE, ResponseType.QUOTA_EXCEEDED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BackoffCounter:
    """Consecutive-failure exponent for one failure class or target."""

    exponent: int
    last_reset: float
    last_update: float
    # When the counter goes quiet: the due time of the retry it last delayed.
    idle_since: float


class BackoffPolicy:
    """
    Computes retry delays for retryable gateway responses.

    ``ServiceUnavailable`` and ``QuotaExceeded`` reflect gateway-wide load and
    share one counter per class across all messages. ``DeviceQuotaExceeded``
    reflects per-device rate limiting and is counted per target.

    The delay for a failure is ``base_delay * 2**n`` capped at ``max_delay``,
    where ``n`` is the counter's value before the failure is recorded. A
    ``Retry-After`` time carried by an unavailable response replaces the computed
    value but the failure is still counted.

    Every counter update happens under a single lock, so concurrent failures in
    the same class always see distinct exponents.
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 300.0,
        idle_timeout: Optional[float] = 3600.0,
        clock: Callable[[], float] = time.monotonic,
        utcnow: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the policy.

        Args:
            base_delay: Delay in seconds for the first failure of a class
            max_delay: Ceiling for computed delays in seconds
            idle_timeout: Seconds a per-target counter may stay quiet before it is
                dropped, counted from the due time of the retry it last delayed;
                None keeps counters forever
            clock: Monotonic clock used for counter bookkeeping
            utcnow: Wall clock used to turn Retry-After times into delays
        """
        if base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if max_delay < base_delay:
            raise ValueError("max_delay must be at least base_delay")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._utcnow = utcnow
        self._lock = threading.Lock()
        now = clock()
        self._global = {kind: BackoffCounter(0, now, now, now) for kind in GLOBAL_TYPES}
        self._per_target: dict[str, BackoffCounter] = {}

    @staticmethod
    def is_retryable(response: Response) -> bool:
        if isinstance(response, UnavailableResponse):
            return True
        return isinstance(response, ErrorResponse) and response.kind in (
            ErrorKind.QUOTA_EXCEEDED,
            ErrorKind.DEVICE_QUOTA_EXCEEDED,
        )

    def next_delay(self, response: Response) -> Optional[float]:
        """
        Record a retryable failure and return the delay before the next attempt.

        Returns:
            Delay in seconds, or None when the response is not retryable
        """
        if not self.is_retryable(response):
            return None

        with self._lock:
            now = self._clock()
            self._evict_idle(now)
            counter = self._counter_for(response, now)
            delay = self._delay_for(counter.exponent)
            if delay < self.max_delay:
                counter.exponent += 1
            counter.last_update = now
            counter.idle_since = now + delay
            exponent = counter.exponent

        if isinstance(response, UnavailableResponse) and response.retry_after is not None:
            hinted = (response.retry_after - self._utcnow()).total_seconds()
            delay = max(0.0, hinted)

        logger.debug(
            "Backoff for %s on %s: %.3fs (exponent now %d)",
            response.response_type.value,
            response.message.target,
            delay,
            exponent,
        )
        return delay

    def record_success(self, target: str) -> None:
        """Reset both global counters and the counter for ``target``."""
        with self._lock:
            now = self._clock()
            for counter in self._global.values():
                counter.exponent = 0
                counter.last_reset = now
                counter.last_update = now
                counter.idle_since = now
            counter = self._per_target.get(target)
            if counter is not None:
                counter.exponent = 0
                counter.last_reset = now
                counter.last_update = now
                counter.idle_since = now
            self._evict_idle(now)

    def exponent(self, response_type: ResponseType, target: Optional[str] = None) -> int:
        """Current exponent for a global class, or for a target's device quota."""
        with self._lock:
            if response_type == ResponseType.DEVICE_QUOTA_EXCEEDED:
                if target is None:
                    raise ValueError("target is required for DeviceQuotaExceeded")
                counter = self._per_target.get(target)
                return counter.exponent if counter is not None else 0
            return self._global[response_type].exponent

    @property
    def tracked_targets(self) -> int:
        with self._lock:
            return len(self._per_target)

    def reset(self) -> None:
        with self._lock:
            now = self._clock()
            for counter in self._global.values():
                counter.exponent = 0
                counter.last_reset = now
                counter.last_update = now
                counter.idle_since = now
            self._per_target.clear()

    def _counter_for(self, response: Response, now: float) -> BackoffCounter:
        if (
            isinstance(response, ErrorResponse)
            and response.kind == ErrorKind.DEVICE_QUOTA_EXCEEDED
        ):
            target = response.message.target
            counter = self._per_target.get(target)
            if counter is None:
                counter = BackoffCounter(0, now, now, now)
                self._per_target[target] = counter
            return counter
        return self._global[response.response_type]

    def _delay_for(self, exponent: int) -> float:
        return min(self.base_delay * (2**exponent), self.max_delay)

    def _evict_idle(self, now: float) -> None:
        if self.idle_timeout is None:
            return
        expired = [
            target
            for target, counter in self._per_target.items()
            if now - counter.idle_since > self.idle_timeout
        ]
        for target in expired:
            del self._per_target[target]
