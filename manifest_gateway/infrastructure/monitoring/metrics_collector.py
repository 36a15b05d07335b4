#!/usr/bin/env python3
"""
Cache Metrics with Prometheus Integration

Process-local, purely observational counters for the cache tiers. Exposed
two ways: the JSON snapshot behind /cache/stats and the Prometheus text
format behind /metrics.

Architectural Decision: one CacheMetrics instance per application
- Injected into the services that record events (no module-level counters)
- Each instance owns its CollectorRegistry, so tests build isolated ones
  without "Duplicated timeseries" errors from the global registry

Author: Senior Solution Architect
Date: 2025-12-05
"""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from manifest_gateway.core.logging.logger import get_logger

logger = get_logger(__name__)

CACHE_EVENTS = ("hits", "misses", "purges", "warms")


class CacheMetrics:
    """
    Hit, miss, purge and warm counters plus supporting Prometheus series.

    Usage:
        metrics = CacheMetrics()
        metrics.increment("hits")
        metrics.snapshot()["hit_rate"]  # "100.0%"
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.time
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(CACHE_EVENTS, 0)
        self._last_reset = self._clock()

        self.registry = CollectorRegistry()
        self._events = Counter(
            "manifest_cache_events_total",
            "Cache events by kind",
            ["event"],
            registry=self.registry,
        )
        self._stale_served = Counter(
            "manifest_stale_served_total",
            "Responses served from a stale entry after an upstream failure",
            ["type"],
            registry=self.registry,
        )
        self._upstream_fetches = Counter(
            "manifest_upstream_fetches_total",
            "Upstream fetches by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self._upstream_latency = Histogram(
            "manifest_upstream_fetch_seconds",
            "Upstream fetch latency",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )
        self._rate_limited = Counter(
            "manifest_rate_limited_total",
            "Requests rejected by the rate limiter",
            registry=self.registry,
        )
        self._store_degraded = Gauge(
            "manifest_store_degraded",
            "1 while the key-value store is serving from the in-process fallback",
            registry=self.registry,
        )

    def increment(self, name: str, amount: int = 1) -> None:
        """
        Increment one of the cache event counters.

        Raises:
            ValueError: For names other than hits, misses, purges, warms
        """
        if name not in self._counts:
            raise ValueError(f"Unknown cache metric: {name}")
        with self._lock:
            self._counts[name] += amount
        self._events.labels(event=name).inc(amount)

    def record_stale_served(self, manifest_type: str) -> None:
        self._stale_served.labels(type=manifest_type).inc()

    def record_upstream_fetch(self, outcome: str, duration_seconds: float | None = None) -> None:
        self._upstream_fetches.labels(outcome=outcome).inc()
        if duration_seconds is not None:
            self._upstream_latency.observe(duration_seconds)

    def record_rate_limited(self) -> None:
        self._rate_limited.inc()

    def set_store_degraded(self, degraded: bool) -> None:
        self._store_degraded.set(1 if degraded else 0)

    @staticmethod
    def format_hit_rate(hits: int, misses: int) -> str:
        total = hits + misses
        if total == 0:
            return "N/A"
        return f"{hits / total * 100:.1f}%"

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            counts = dict(self._counts)
            last_reset = self._last_reset
        return {
            **counts,
            "hit_rate": self.format_hit_rate(counts["hits"], counts["misses"]),
            "uptime_ms": int((self._clock() - last_reset) * 1000),
            "last_reset": datetime.fromtimestamp(last_reset, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
        }

    def reset(self) -> None:
        """Zero the JSON counters. Prometheus counters stay monotonic."""
        with self._lock:
            self._counts = dict.fromkeys(CACHE_EVENTS, 0)
            self._last_reset = self._clock()
        logger.info("Cache statistics reset", stage="M_METRICS_COLLECTION")

    def render_prometheus(self) -> bytes:
        return generate_latest(self.registry)

    @staticmethod
    def content_type() -> str:
        return CONTENT_TYPE_LATEST
