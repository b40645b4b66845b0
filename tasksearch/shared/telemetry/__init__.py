"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from tasksearch.shared.telemetry.logging import setup_logging
from tasksearch.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    setup_from_settings,
)
from tasksearch.shared.telemetry.tracing import (
    TracedOperation,
    add_span_attributes,
    traced,
)

__all__ = [
    "setup_logging",
    "TelemetryConfig",
    "get_telemetry",
    "setup_from_settings",
    "traced",
    "add_span_attributes",
    "TracedOperation",
]
