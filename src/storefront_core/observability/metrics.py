"""Prometheus metrics definitions and recording."""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: "MetricsRegistry | None" = None


class MetricsRegistry:
    """
    Registry for storefront metrics.

    Provides pre-defined metrics for:
    - Catalog queries (latency, result size, memo cache hits)
    - Catalog refreshes
    - Cart and wishlist mutations by operation
    - Snapshot storage failures
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Initialize the metrics registry.

        Args:
            registry: Prometheus collector registry (process default if None).
        """
        self.registry = registry or REGISTRY

        self.catalog_query_duration = Histogram(
            "catalog_query_duration_seconds",
            "Duration of catalog queries in seconds",
            ["sort"],
            registry=self.registry,
        )
        self.catalog_query_results = Histogram(
            "catalog_query_result_count",
            "Number of products returned per catalog query",
            buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000),
            registry=self.registry,
        )
        self.catalog_cache_total = Counter(
            "catalog_query_cache_total",
            "Catalog query memo lookups by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.catalog_refresh_total = Counter(
            "catalog_refresh_total",
            "Catalog reloads from the product source",
            ["source"],
            registry=self.registry,
        )
        self.cart_operations_total = Counter(
            "cart_operations_total",
            "Cart and wishlist mutations",
            ["store", "operation"],
            registry=self.registry,
        )
        self.storage_errors_total = Counter(
            "snapshot_storage_errors_total",
            "Snapshot storage failures",
            ["store", "phase"],
            registry=self.registry,
        )
        logger.info("Metrics registry initialized")

    def record_query(self, sort: str, duration_seconds: float, result_count: int) -> None:
        """Record one catalog query."""
        self.catalog_query_duration.labels(sort=sort).observe(duration_seconds)
        self.catalog_query_results.observe(result_count)

    def record_cache(self, hit: bool) -> None:
        self.catalog_cache_total.labels(outcome="hit" if hit else "miss").inc()

    def record_refresh(self, source: str) -> None:
        self.catalog_refresh_total.labels(source=source).inc()

    def record_cart_operation(self, store: str, operation: str) -> None:
        self.cart_operations_total.labels(store=store, operation=operation).inc()

    def record_storage_error(self, store: str, phase: str) -> None:
        self.storage_errors_total.labels(store=store, phase=phase).inc()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry, creating it on first use."""
    global _metrics_registry
    if _metrics_registry is None:
        _metrics_registry = MetricsRegistry()
    return _metrics_registry
