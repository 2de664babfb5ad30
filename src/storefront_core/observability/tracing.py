"""Tracing utilities and decorators."""

import functools
import inspect
import logging
from typing import Any, Callable, TypeVar

from opentelemetry import trace
from opentelemetry.trace import StatusCode

logger = logging.getLogger(__name__)

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def get_tracer(name: str = "storefront_core") -> trace.Tracer:
    """Get an OpenTelemetry tracer (no-op until a provider is installed)."""
    return trace.get_tracer(name)


def traced(
    name: str | None = None,
    attributes: dict[str, Any] | None = None,
    record_exception: bool = True,
) -> Callable[[F], F]:
    """
    Decorator to trace a function with OpenTelemetry.

    Args:
        name: Span name (defaults to the function's qualified name).
        attributes: Static attributes to add to the span.
        record_exception: Whether to record exceptions on the span.

    Usage:
        @traced("cart.add_item")
        async def add_item(owner_id: str, ...):
            ...
    """

    def decorator(func: F) -> F:
        span_name = name or func.__qualname__
        tracer = get_tracer(func.__module__)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    span.set_attributes(attributes)
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if record_exception:
                        span.record_exception(e)
                    span.set_status(StatusCode.ERROR)
                    raise

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    span.set_attributes(attributes)
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if record_exception:
                        span.record_exception(e)
                    span.set_status(StatusCode.ERROR)
                    raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator


def add_span_attribute(key: str, value: Any) -> None:
    """Add an attribute to the current span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a hex string, or None outside a span."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return format(context.trace_id, "032x")


def get_current_span_id() -> str | None:
    """Get the current span ID as a hex string, or None outside a span."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return format(context.span_id, "016x")
