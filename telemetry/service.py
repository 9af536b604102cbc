"""
Telemetry service for structured logging and span export.

This module provides structured JSON logging with request correlation and
the OpenTelemetry tracer provider that carries ingestion spans to the
OTLP collector.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from middleware.request_id import get_request_id


class JSONFormatter(logging.Formatter):
    """
    Custom log formatter that outputs logs in JSON format.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry
    - request_id: Correlation ID for request tracing

    Additional fields can be included via the 'extra_data' attribute
    on the log record.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted string containing the log entry
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": get_request_id(),
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        if hasattr(record, "extra_data") and record.extra_data:
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


class TelemetryService:
    """
    Owns the process-wide logging setup and tracer provider.

    When no tracer provider is supplied, one is built from settings with a
    BatchSpanProcessor in front of an OTLP/HTTP exporter and registered as
    the global provider. Ending a span only enqueues it on the processor;
    export happens on the processor's background thread. shutdown() flushes
    whatever is still queued.
    """

    def __init__(
        self,
        settings: Optional[Any] = None,
        tracer_provider: Optional[TracerProvider] = None,
        configure_logging: bool = True,
    ):
        """
        Initialize the telemetry service.

        Args:
            settings: Application settings containing log_level, otel_endpoint,
                     otel_service_name and otel_export_enabled
            tracer_provider: Pre-built provider to use instead of building one
            configure_logging: Install the JSON formatter on the root logger
        """
        self.settings = settings
        self._logger = logging.getLogger("telemetry")
        if configure_logging:
            self._setup_logging()
        self.provider = tracer_provider or self._build_tracer_provider()
        self.tracer = self.provider.get_tracer(self.service_name)

    @property
    def service_name(self) -> str:
        return getattr(self.settings, "otel_service_name", "events-service")

    def _setup_logging(self) -> None:
        """
        Configure structured JSON logging.

        Sets up the root logger with JSONFormatter and configures
        the log level based on settings.
        """
        log_level_str = getattr(self.settings, "log_level", "INFO")
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Remove existing handlers to avoid duplicate logs
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(log_level)
        stdout_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(stdout_handler)

        self._logger.info("Telemetry service initialized", extra={
            "extra_data": {"log_level": log_level_str}
        })

    def _build_tracer_provider(self) -> TracerProvider:
        """
        Build and register the global tracer provider.

        The OTLP exporter reads OTEL_EXPORTER_OTLP_* from the environment
        when no explicit endpoint is configured.
        """
        provider = TracerProvider(resource=Resource(attributes={
            SERVICE_NAME: self.service_name
        }))

        if getattr(self.settings, "otel_export_enabled", True):
            otel_endpoint = getattr(self.settings, "otel_endpoint", None)
            exporter = OTLPSpanExporter(endpoint=otel_endpoint) if otel_endpoint else OTLPSpanExporter()
            provider.add_span_processor(BatchSpanProcessor(exporter))
            self._logger.info("OpenTelemetry tracing configured", extra={
                "extra_data": {
                    "otel_endpoint": otel_endpoint or "environment default",
                    "service_name": self.service_name,
                }
            })
        else:
            self._logger.warning("OpenTelemetry export disabled, spans will not leave the process")

        trace.set_tracer_provider(provider)
        return provider

    def shutdown(self) -> None:
        """Flush queued spans and stop the export pipeline."""
        flushed = self.provider.force_flush()
        if not flushed:
            self._logger.warning("Timed out flushing spans on shutdown")
        self.provider.shutdown()
        self._logger.info("Telemetry service shut down")


def initialize_telemetry(settings: Optional[Any] = None) -> TelemetryService:
    """
    Build the telemetry service used by the application.

    Args:
        settings: Application settings for configuration

    Returns:
        The initialized telemetry service
    """
    return TelemetryService(settings)
