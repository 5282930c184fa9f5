"""Metrics collection for the search subsystem.

Provides a thin convenience wrapper around ``prometheus_client`` so the
orchestrator and its backends record search, cache, and backend metrics
consistently.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A single registry is kept per service (can be injected for tests)
"""

import time
from functools import wraps
from typing import Any, Callable, Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from libs.common.logging import log_performance

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection for the search service.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.search_requests = Counter(
            'search_requests_total',
            'Total search requests',
            ['mode', 'mode_used'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'search_duration_seconds',
            'Search duration',
            ['mode'],
            registry=self.registry
        )

        self.search_failures = Counter(
            'search_unavailable_total',
            'Searches where no branch produced results',
            ['mode'],
            registry=self.registry
        )

        self.backend_failures = Counter(
            'search_backend_failures_total',
            'Failed backend branches',
            ['backend'],
            registry=self.registry
        )

        self.enrichment_drops = Counter(
            'search_enrichment_dropped_total',
            'Semantic hits dropped because enrichment failed',
            registry=self.registry
        )

        self.cache_hits = Counter(
            'search_cache_hits_total',
            'Total cache hits',
            ['cache_type'],
            registry=self.registry
        )

        self.cache_misses = Counter(
            'search_cache_misses_total',
            'Total cache misses',
            ['cache_type'],
            registry=self.registry
        )

    def record_search(self, mode: str, mode_used: str, duration: float) -> None:
        """Record a completed search; ``duration`` is in seconds."""
        self.search_requests.labels(mode=mode, mode_used=mode_used).inc()
        self.search_duration.labels(mode=mode).observe(duration)

    def record_search_unavailable(self, mode: str) -> None:
        """Record a search that failed on every branch."""
        self.search_failures.labels(mode=mode).inc()

    def record_backend_failure(self, backend: str) -> None:
        """Record a failed keyword/semantic branch."""
        self.backend_failures.labels(backend=backend).inc()

    def record_enrichment_drop(self) -> None:
        """Record a semantic hit dropped during enrichment."""
        self.enrichment_drops.inc()

    def record_cache_hit(self, cache_type: str) -> None:
        """Record cache hit."""
        self.cache_hits.labels(cache_type=cache_type).inc()

    def record_cache_miss(self, cache_type: str) -> None:
        """Record cache miss."""
        self.cache_misses.labels(cache_type=cache_type).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the process-wide metrics collector.

    A singleton avoids registering duplicate collectors for the same names.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector


def measure_time(operation: str, **labels: Any) -> Callable:
    """Decorator logging the duration of an async operation.

    Example
    >>> @measure_time("keyword_search", index="components")
    ... async def search(...):
    ...     ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Operation {operation} failed",
                    operation=operation,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                    error=str(e),
                    **labels
                )
                raise
            log_performance(operation, (time.perf_counter() - start_time) * 1000, **labels)
            return result
        return wrapper
    return decorator
