"""Logging and tracing setup."""

from relay_api.observability.logging import configure_logging
from relay_api.observability.otel import flush_telemetry, get_tracer, setup_telemetry

__all__ = ["configure_logging", "flush_telemetry", "get_tracer", "setup_telemetry"]
