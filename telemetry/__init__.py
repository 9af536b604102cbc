"""
Telemetry module for structured logging and span export.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService owning the OpenTelemetry tracer provider
"""

from telemetry.service import (
    JSONFormatter,
    TelemetryService,
    initialize_telemetry,
)

__all__ = [
    "JSONFormatter",
    "TelemetryService",
    "initialize_telemetry",
]
