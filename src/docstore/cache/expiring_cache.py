from __future__ import annotations

import heapq
import logging
import threading
import time
import typing as t
from dataclasses import dataclass

from docstore.monitoring import metrics

_logger = logging.getLogger(__name__)

Clock = t.Callable[[], float]

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 600.0
DEFAULT_SWEEP_BATCH_SIZE = 500


@dataclass(frozen=True)
class CacheEntry:
    value: t.Any
    expires_at: float


class ExpiringCache:
    """Thread-safe string-keyed cache where every entry carries a deadline.

    Expired entries are treated as absent by ``get`` and removed on the spot;
    a background sweeper (see ``start``) reclaims entries nobody reads again.
    Deadlines are also kept in a min-heap so a sweep only visits entries that
    are already due, one bounded batch per lock acquisition.
    Entries are immutable and replaced as a whole, so concurrent readers see
    either the old or the new entry and the last writer wins.
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        sweep_batch_size: int = DEFAULT_SWEEP_BATCH_SIZE,
        clock: t.Optional[Clock] = None,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        if sweep_interval_seconds <= default_ttl_seconds:
            raise ValueError("sweep_interval_seconds must be greater than default_ttl_seconds")
        self._store: t.Dict[str, CacheEntry] = {}
        # (expires_at, key); may hold superseded deadlines, re-checked against _store
        self._deadlines: t.List[t.Tuple[float, str]] = []
        self._lock = threading.Lock()
        self._default_ttl = default_ttl_seconds
        self._sweep_interval = sweep_interval_seconds
        self._sweep_batch_size = max(1, sweep_batch_size)
        self._clock = clock or time.monotonic
        self._stop = threading.Event()
        self._sweeper: t.Optional[threading.Thread] = None
        self._sweep_hooks: t.List[t.Callable[[], t.Any]] = []
        self._closed = False

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> t.Tuple[t.Any, bool]:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                metrics.cache_requests_total.inc(result="miss")
                return None, False
            if entry.expires_at <= now:
                del self._store[key]
                metrics.cache_requests_total.inc(result="miss")
                metrics.cache_evictions_total.inc(reason="expired")
                return None, False
        metrics.cache_requests_total.inc(result="hit")
        return entry.value, True

    def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl)
        with self._lock:
            self._store[key] = entry
            heapq.heappush(self._deadlines, (entry.expires_at, key))

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._deadlines.clear()

    def sweep(self) -> int:
        """Evict expired entries, holding the lock for one batch at a time.

        Only deadlines that are already due are popped; live entries are never
        visited, so a sweep costs O(expired * log n) rather than a full scan.
        """
        now = self._clock()
        evicted = 0
        while True:
            with self._lock:
                popped = 0
                while popped < self._sweep_batch_size and self._deadlines and self._deadlines[0][0] <= now:
                    _, key = heapq.heappop(self._deadlines)
                    popped += 1
                    entry = self._store.get(key)
                    # re-check: the key may have been overwritten or deleted since it was scheduled
                    if entry is not None and entry.expires_at <= now:
                        del self._store[key]
                        evicted += 1
                more = bool(self._deadlines) and self._deadlines[0][0] <= now
            if not more:
                break
        if evicted:
            metrics.cache_evictions_total.inc(evicted, reason="expired")
            _logger.debug("ExpiringCache: swept %d expired entries", evicted)
        for hook in list(self._sweep_hooks):
            hook()
        return evicted

    def add_sweep_hook(self, hook: t.Callable[[], t.Any]) -> None:
        """Run ``hook`` after every sweep, outside the cache lock."""
        self._sweep_hooks.append(hook)

    def start(self) -> "ExpiringCache":
        if self._closed:
            raise RuntimeError("cache is closed")
        if self._sweeper is None:
            self._sweeper = threading.Thread(target=self._run_sweeper, name="docstore-cache-sweeper", daemon=True)
            self._sweeper.start()
            _logger.info("ExpiringCache: sweeper started interval=%ss", self._sweep_interval)
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=5.0)
            self._sweeper = None
        self.clear()
        _logger.info("ExpiringCache: closed")

    def _run_sweeper(self) -> None:
        while not self._stop.wait(self._sweep_interval):
            try:
                self.sweep()
            except Exception:
                _logger.exception("ExpiringCache: sweep failed")

    def __enter__(self) -> "ExpiringCache":
        return self.start()

    def __exit__(self, *exc_info: t.Any) -> None:
        self.close()

    def __contains__(self, key: object) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._store.get(t.cast(str, key))
            return entry is not None and entry.expires_at > now

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
