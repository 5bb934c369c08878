"""Shared telemetry: logging setup, OpenTelemetry config, and span helpers."""

from app.shared.telemetry.logging import get_logger, setup_logging
from app.shared.telemetry.telemetry import TelemetryConfig, get_tracer
from app.shared.telemetry.tracing import add_span_attributes, set_span_error

__all__ = [
    "setup_logging",
    "get_logger",
    "TelemetryConfig",
    "get_tracer",
    "add_span_attributes",
    "set_span_error",
]
