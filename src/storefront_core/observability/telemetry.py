"""OpenTelemetry SDK initialization."""

import logging
from dataclasses import dataclass, field

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

# Provider installed by init_telemetry, flushed by shutdown_telemetry
_tracer_provider: TracerProvider | None = None


@dataclass
class TelemetryConfig:
    """Configuration for OpenTelemetry."""

    # Service identification
    service_name: str = "storefront-core"
    service_version: str = "0.1.0"
    environment: str = "development"

    # OTLP exporter settings
    otlp_endpoint: str = "http://localhost:4317"
    otlp_insecure: bool = True

    # Sampling
    trace_sample_rate: float = 1.0

    # Resource attributes
    resource_attributes: dict[str, str] = field(default_factory=dict)


def init_telemetry(config: TelemetryConfig | None = None) -> bool:
    """
    Install a global tracer provider exporting spans over OTLP.

    Args:
        config: Telemetry configuration.

    Returns:
        True if tracing was initialized (or already was).
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return True

    if config is None:
        config = TelemetryConfig()

    resource = Resource.create(
        {
            "service.name": config.service_name,
            "service.version": config.service_version,
            "deployment.environment": config.environment,
            **config.resource_attributes,
        }
    )
    provider = TracerProvider(
        resource=resource,
        sampler=TraceIdRatioBased(config.trace_sample_rate),
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=config.otlp_insecure)
        )
    )
    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    logger.info(f"Tracing initialized with endpoint: {config.otlp_endpoint}")
    return True


def shutdown_telemetry() -> None:
    """Flush and shut down the tracer provider, if one was installed."""
    global _tracer_provider

    if _tracer_provider is None:
        return
    _tracer_provider.shutdown()
    _tracer_provider = None
    logger.info("Telemetry shutdown complete")
