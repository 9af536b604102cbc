"""
Ingestion module for sensor measurements and GPS batches.

This module provides the request models, the SpanEmitter that turns
accepted payloads into spans, and the IngestionService used by the
ingestion routes.
"""

from ingestion.emitter import SpanEmitter, serialize
from ingestion.service import (
    IngestionService,
    GenericMeasurement,
    GPSGeometry,
    GPSLocation,
    GPSLocationBatch,
    GPSUploadResponse,
)

__all__ = [
    "SpanEmitter",
    "serialize",
    "IngestionService",
    "GenericMeasurement",
    "GPSGeometry",
    "GPSLocation",
    "GPSLocationBatch",
    "GPSUploadResponse",
]
