"""
Failure gate for the reverse geocoder.

Every stop and every drive endpoint costs a Nominatim call, so a run over a
long backlog would otherwise wait out the full timeout once per event while
the geocoder is down. After ``failure_threshold`` consecutive failures the
gate opens and calls fail fast with :class:`CircuitOpen`; once
``recovery_timeout`` has passed a single probe call is let through.
"""

from __future__ import annotations

import functools
import logging
import time
from enum import StrEnum

logger = logging.getLogger(__name__)


class BreakerState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitOpen(Exception):
    """A call was refused without being attempted."""

    def __init__(self, service: str, resets_in: float) -> None:
        super().__init__(f"{service} calls suspended for another {resets_in:.0f}s")
        self.service = service
        self.resets_in = resets_in


class CircuitBreaker:
    def __init__(
        self,
        service: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
    ) -> None:
        self.service = service
        self.failure_threshold = max(1, failure_threshold)
        self.recovery_timeout = recovery_timeout
        self.reset()

    def reset(self) -> None:
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def state(self) -> BreakerState:
        if self._opened_at is None:
            return BreakerState.CLOSED
        if self._seconds_open() >= self.recovery_timeout:
            return BreakerState.HALF_OPEN
        return BreakerState.OPEN

    def _seconds_open(self) -> float:
        return time.monotonic() - (self._opened_at or 0.0)

    def check(self) -> None:
        """Raise :class:`CircuitOpen` unless a call may be attempted now."""
        if self.state is BreakerState.OPEN:
            raise CircuitOpen(
                self.service,
                max(0.0, self.recovery_timeout - self._seconds_open()),
            )

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info("%s recovered, resuming calls", self.service)
        self.reset()

    def record_failure(self) -> None:
        self._failures += 1
        state = self.state
        if state is BreakerState.HALF_OPEN:
            self._opened_at = time.monotonic()
            logger.warning("%s probe failed, suspending calls again", self.service)
        elif state is BreakerState.CLOSED and self._failures >= self.failure_threshold:
            self._opened_at = time.monotonic()
            logger.warning(
                "%s failed %d times in a row, suspending calls for %.0fs",
                self.service,
                self._failures,
                self.recovery_timeout,
            )


nominatim_breaker = CircuitBreaker("Nominatim")


def with_circuit_breaker(breaker: CircuitBreaker):
    """Gate an async callable on ``breaker``, recording each outcome."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            breaker.check()
            try:
                result = await fn(*args, **kwargs)
            except Exception:
                breaker.record_failure()
                raise
            breaker.record_success()
            return result

        return wrapper

    return decorator
