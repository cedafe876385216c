"""OpenTelemetry tracing for exchange calls.

The global tracer provider can only be installed once per process, so
``setup_telemetry`` keeps the first provider and returns it on later calls
(each application lifespan calls it).
"""

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from relay_api.config import Settings, get_settings

logger = structlog.get_logger()

SERVICE_NAME = "webhook-order-relay"

_provider: TracerProvider | None = None


def build_resource(settings: Settings) -> Resource:
    """Resource attributes identifying this relay instance."""
    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": settings.app_version,
            "deployment.environment": settings.environment,
            "relay.storage_backend": settings.storage_backend,
            "relay.signing_mode": settings.signing_mode,
        }
    )


def setup_telemetry(settings: Settings | None = None) -> TracerProvider:
    """Install the process-wide tracer provider.

    Spans are exported over OTLP/gRPC only when an endpoint is configured;
    otherwise they are recorded and dropped.

    Args:
        settings: Settings to use; defaults to the cached environment settings

    Returns:
        The installed provider
    """
    global _provider
    if _provider is not None:
        return _provider

    settings = settings or get_settings()
    provider = TracerProvider(resource=build_resource(settings))

    endpoint = settings.otel_exporter_otlp_endpoint
    if endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=endpoint, insecure=settings.otel_exporter_insecure)
            )
        )
        logger.info("OTLP span exporter enabled", endpoint=endpoint)

    trace.set_tracer_provider(provider)
    _provider = provider
    logger.info("Tracing initialized", service=SERVICE_NAME, exporting=bool(endpoint))
    return provider


def flush_telemetry(timeout_millis: int = 5000) -> None:
    """Push buffered spans to the exporter before shutdown."""
    if _provider is None:
        return
    if not _provider.force_flush(timeout_millis):
        logger.warning("Timed out flushing spans", timeout_millis=timeout_millis)


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer from the global provider (no-op until setup_telemetry runs)."""
    return trace.get_tracer(name)
