"""Integration tests for observability features."""

import logging

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from storefront_core.api.server import app
from storefront_core.observability.logging import configure_logging
from storefront_core.observability.metrics import MetricsRegistry, get_metrics
from storefront_core.observability.telemetry import TelemetryConfig
from storefront_core.observability.tracing import (
    add_span_attribute,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    traced,
)


class TestTelemetryConfig:
    """Tests for telemetry configuration."""

    def test_default_config(self):
        """Test default telemetry configuration."""
        config = TelemetryConfig()

        assert config.service_name == "storefront-core"
        assert config.trace_sample_rate == 1.0

    def test_custom_config(self):
        """Test custom telemetry configuration."""
        config = TelemetryConfig(
            service_name="custom-service",
            environment="production",
            otlp_endpoint="http://collector:4317",
            trace_sample_rate=0.5,
        )

        assert config.environment == "production"
        assert config.trace_sample_rate == 0.5


class TestTracing:
    """Tests for tracing utilities."""

    def test_get_tracer(self):
        """Test getting a tracer."""
        assert get_tracer("test_module") is not None

    def test_traced_decorator_sync(self):
        """Test @traced decorator on sync function."""

        @traced("test.sync")
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_traced_decorator_async(self):
        """Test @traced decorator on async function."""

        @traced("test.async", attributes={"component": "test"})
        async def double(value: int) -> int:
            return value * 2

        assert await double(21) == 42

    def test_traced_decorator_with_exception(self):
        """Test @traced re-raises exceptions."""

        @traced()
        def fail() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            fail()

    def test_helpers_without_span(self):
        """Test span helpers are safe outside a recording span."""
        add_span_attribute("cart.operation", "add_item")

        assert get_current_trace_id() is None
        assert get_current_span_id() is None


class TestMetrics:
    """Tests for the Prometheus registry wrapper."""

    def test_get_metrics_is_shared(self):
        """Test the global registry is created once."""
        assert get_metrics() is get_metrics()

    def test_record_query(self):
        """Test query metrics are recorded per sort."""
        metrics = MetricsRegistry(CollectorRegistry())

        metrics.record_query("newest", 0.002, 12)

        assert metrics.registry.get_sample_value(
            "catalog_query_duration_seconds_count", {"sort": "newest"}
        ) == 1
        assert metrics.registry.get_sample_value("catalog_query_result_count_sum") == 12

    def test_record_storage_error(self):
        """Test storage errors are counted by store and phase."""
        metrics = MetricsRegistry(CollectorRegistry())

        metrics.record_storage_error("cart", "write")

        assert metrics.registry.get_sample_value(
            "snapshot_storage_errors_total", {"store": "cart", "phase": "write"}
        ) == 1

    def test_metrics_endpoint(self):
        """Test the Prometheus endpoint exposes catalog metrics."""
        with TestClient(app) as client:
            response = client.get("/metrics")

        assert response.status_code == 200
        assert "catalog_refresh_total" in response.text


class TestLoggingConfiguration:
    """Tests for logging setup."""

    def test_configure_logging(self):
        """Test root level and module overrides."""
        configure_logging(level="DEBUG", json_format=True, module_levels={"redis": "WARNING"})

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("redis").level == logging.WARNING

        configure_logging(level="INFO", json_format=False)
        assert logging.getLogger().level == logging.INFO
