"""Retry and circuit-breaker helpers used by durable storage adapters.

The cache core never retries; these wrap store round-trips only.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class CircuitOpenError(RuntimeError):
    """The breaker is open and the store call was not attempted."""


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0


class CircuitState:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(self, config: Optional[CircuitBreakerConfig] = None, name: str = "storage") -> None:
        self._config = config or CircuitBreakerConfig()
        self._name = name
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> str:
        return self._state

    def _can_attempt(self) -> bool:
        if self._state == CircuitState.OPEN:
            if (time.monotonic() - self._opened_at) >= self._config.reset_timeout_seconds:
                self._state = CircuitState.HALF_OPEN
                return True
            return False
        return True

    def _on_success(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0

    def _on_failure(self) -> None:
        self._failures += 1
        if self._state == CircuitState.HALF_OPEN or self._failures >= self._config.failure_threshold:
            if self._state != CircuitState.OPEN:
                _logger.warning("CircuitBreaker[%s]: opening after %d failures", self._name, self._failures)
            self._state = CircuitState.OPEN
            self._opened_at = time.monotonic()

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        if not self._can_attempt():
            raise CircuitOpenError(f"{self._name} circuit open")
        try:
            result = await fn()
        except Exception:
            self._on_failure()
            raise
        else:
            self._on_success()
            return result


async def with_retries(
    coro_factory: Callable[[], Awaitable[T]],
    attempts: int = 3,
    backoff_ms: Optional[Iterable[int]] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """Await ``coro_factory()`` up to ``attempts`` times.

    Only exceptions matching ``retry_on`` are retried; anything else
    propagates immediately.
    """
    backoff_seq: List[int] = list(backoff_ms or [100, 500, 2000])
    last_exc: BaseException | None = None
    for attempt in range(max(1, attempts)):
        try:
            return await coro_factory()
        except retry_on as exc:
            last_exc = exc
            if attempt >= attempts - 1:
                break
            delay_ms = backoff_seq[min(attempt, len(backoff_seq) - 1)]
            _logger.debug("with_retries: attempt %d failed (%s); sleeping %dms", attempt + 1, exc, delay_ms)
            await asyncio.sleep(delay_ms / 1000.0)
    assert last_exc is not None
    raise last_exc
