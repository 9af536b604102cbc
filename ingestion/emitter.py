"""
Span emitter for accepted ingestion payloads.

Each accepted measurement or GPS location becomes one span whose
attributes carry the bucket and the JSON-serialized payload. The span is
ended immediately; ending it hands it to the tracer provider's span
processor, which owns buffering and export.
"""

import json
import logging
from typing import Any

from opentelemetry.trace import Tracer

from errors.exceptions import serialization_failure

logger = logging.getLogger(__name__)

DATA_SPAN_NAME = "data"
GPS_LOCATION_SPAN_NAME = "gps-location"


def serialize(value: Any) -> str:
    """
    Serialize a value to compact JSON, preserving key order.

    Raises:
        AppException: SERIALIZATION_FAILURE if the value is not representable
            as strict JSON (for example NaN or an unsupported type)
    """
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise serialization_failure(details={"error": str(e)}) from e


class SpanEmitter:
    """
    Emits one span per accepted record.

    Attributes:
        tracer: OpenTelemetry tracer the spans are created on
    """

    def __init__(self, tracer: Tracer):
        self.tracer = tracer

    def _emit(self, name: str, attributes: dict[str, str]) -> None:
        span = self.tracer.start_span(name, attributes=attributes)
        span.end()
        logger.debug(
            f"Emitted {name} span",
            extra={"extra_data": {"span_name": name, "bucket": attributes.get("bucket")}}
        )

    def emit_measurement(self, bucket: str, timestamp: str, payload: Any) -> None:
        """
        Emit a "data" span for a generic measurement.

        The payload is serialized before the span is created, so a
        serialization failure emits nothing.
        """
        self._emit(DATA_SPAN_NAME, {
            "bucket": bucket,
            "timestamp": timestamp,
            "payload": serialize(payload),
        })

    def emit_gps_location(self, bucket: str, location: Any) -> None:
        """Emit a "gps-location" span for one already-dumped GPS location."""
        self._emit(GPS_LOCATION_SPAN_NAME, {
            "bucket": bucket,
            "location": serialize(location),
        })
