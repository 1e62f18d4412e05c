"""In-process metrics for cache, session and storage activity."""

from .metrics import (
    Counter,
    Histogram,
    cache_evictions_total,
    cache_requests_total,
    reset_all,
    sessions_total,
    storage_latency_seconds,
)

__all__ = [
    "Counter",
    "Histogram",
    "cache_requests_total",
    "cache_evictions_total",
    "sessions_total",
    "storage_latency_seconds",
    "reset_all",
]
