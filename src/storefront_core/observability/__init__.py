"""Observability: structured logging, tracing and metrics."""

from storefront_core.observability.context import get_current_owner_id, owner_context
from storefront_core.observability.logging import LogContext, configure_logging
from storefront_core.observability.metrics import MetricsRegistry, get_metrics
from storefront_core.observability.tracing import get_current_trace_id, traced

__all__ = [
    "LogContext",
    "MetricsRegistry",
    "configure_logging",
    "get_current_owner_id",
    "get_current_trace_id",
    "get_metrics",
    "owner_context",
    "traced",
]
