from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class Counter:
    name: str
    help: str
    values: Dict[Tuple, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc(self, value: float = 1.0, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        with self._lock:
            self.values[key] = self.values.get(key, 0.0) + value

    def get(self, **labels: Any) -> float:
        key = tuple(sorted(labels.items()))
        with self._lock:
            return self.values.get(key, 0.0)

    def reset(self) -> None:
        with self._lock:
            self.values.clear()


@dataclass
class Histogram:
    name: str
    help: str
    buckets: List[float]
    counts: Dict[Tuple, List[int]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def observe(self, val: float, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        with self._lock:
            if key not in self.counts:
                # one overflow slot past the last bucket
                self.counts[key] = [0 for _ in range(len(self.buckets) + 1)]
            for i, b in enumerate(self.buckets):
                if val <= b:
                    self.counts[key][i] += 1
                    break
            else:
                self.counts[key][-1] += 1

    def total(self, **labels: Any) -> int:
        key = tuple(sorted(labels.items()))
        with self._lock:
            return sum(self.counts.get(key, []))

    def reset(self) -> None:
        with self._lock:
            self.counts.clear()


# Predefined metrics
cache_requests_total = Counter("docstore_cache_requests_total", "Cache lookups by result (hit/miss)")
cache_evictions_total = Counter("docstore_cache_evictions_total", "Cache entries removed by reason")
sessions_total = Counter("docstore_sessions_total", "Session registry events")
storage_latency_seconds = Histogram(
    "docstore_storage_latency_seconds",
    "Store operation latency",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)


def reset_all() -> None:
    for metric in (cache_requests_total, cache_evictions_total, sessions_total, storage_latency_seconds):
        metric.reset()
