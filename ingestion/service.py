"""
Ingestion service for sensor measurements and GPS batches.

This module provides the request models for the two ingestion routes and
the IngestionService that authorizes a request, decodes its body and
hands the result to the SpanEmitter.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator

from auth.tokens import require_token
from config.settings import Settings
from errors.exceptions import malformed_input
from ingestion.emitter import SpanEmitter

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class GenericMeasurement(BaseModel):
    """
    Body of POST /api/data.

    Attributes:
        timestamp: Optional ISO-8601 string; the current UTC time is used when absent
        bucket: Logical sensor/stream identifier
        payload: Arbitrary JSON value, forwarded verbatim
    """

    timestamp: Optional[str] = None
    bucket: str
    payload: Any = None

    @field_validator("bucket")
    @classmethod
    def validate_bucket(cls, v: str) -> str:
        if not v:
            raise ValueError("bucket cannot be empty")
        return v


class GPSGeometry(BaseModel):
    """GeoJSON-style geometry; coordinates are [longitude, latitude]."""

    type: str
    coordinates: Tuple[float, float]

    @field_validator("coordinates", mode="before")
    @classmethod
    def validate_coordinates(cls, v: Any) -> Any:
        """Only JSON numbers are coordinates; numeric strings and booleans are not."""
        if isinstance(v, (list, tuple)):
            for item in v:
                if isinstance(item, bool) or not isinstance(item, (int, float)):
                    raise ValueError("coordinates must be numbers")
        return v


class GPSLocation(BaseModel):
    type: str
    geometry: GPSGeometry
    properties: Any = None


class GPSLocationBatch(BaseModel):
    """Body of POST /api/gps/{bucket}/{token}. An empty list is valid."""

    locations: List[GPSLocation]


class GPSUploadResponse(BaseModel):
    result: str = "ok"


def utc_now_iso() -> str:
    """Current instant as an ISO-8601 UTC string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def decode_body(model: Type[ModelT], body: bytes, what: str) -> ModelT:
    """
    Decode a JSON request body into a model.

    Raises:
        AppException: MALFORMED_INPUT when the body is not valid JSON or
            does not match the model
    """
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        logger.warning(
            f"Invalid {what} payload",
            extra={"extra_data": {"errors": e.errors(include_url=False)}}
        )
        raise malformed_input(
            message=f"Invalid {what} payload",
            details={"validation_errors": e.errors(include_url=False)}
        ) from e


class IngestionService:
    """
    Authorizes and processes ingestion requests.

    No span is emitted before the request's token has been accepted.

    Attributes:
        settings: Application settings holding the two shared secrets
        emitter: SpanEmitter receiving accepted records
    """

    def __init__(self, settings: Settings, emitter: SpanEmitter):
        self.settings = settings
        self.emitter = emitter
        self._logger = logging.getLogger(__name__)

    def ingest_measurement(self, token: Optional[str], body: bytes) -> None:
        """
        Process a generic measurement.

        Args:
            token: Value of the emitter header, None when absent
            body: Raw request body

        Raises:
            AppException: MALFORMED_INPUT, AUTHORIZATION_FAILURE or
                SERIALIZATION_FAILURE
        """
        measurement = decode_body(GenericMeasurement, body, "measurement")
        require_token(token, self.settings.embedded_token, route="data")

        timestamp = measurement.timestamp if measurement.timestamp is not None else utc_now_iso()
        self.emitter.emit_measurement(measurement.bucket, timestamp, measurement.payload)

        self._logger.info(
            f"Measurement accepted for bucket {measurement.bucket}",
            extra={"extra_data": {"bucket": measurement.bucket, "timestamp": timestamp}}
        )

    def authorize_gps(self, token: str) -> None:
        """
        Check the GPS path token. Called before the request body is read.

        Raises:
            AppException: AUTHORIZATION_FAILURE
        """
        require_token(token, self.settings.gps_push_token, route="gps")

    def ingest_gps_batch(self, bucket: str, body: bytes) -> int:
        """
        Process a GPS location batch whose token was accepted by authorize_gps.

        Args:
            bucket: Bucket taken from the request path
            body: Raw request body

        Returns:
            Number of spans emitted

        Raises:
            AppException: MALFORMED_INPUT or SERIALIZATION_FAILURE
        """
        batch = decode_body(GPSLocationBatch, body, "GPS batch")
        return self.emit_locations(bucket, batch.locations)

    def emit_locations(self, bucket: str, locations: List[GPSLocation]) -> int:
        """
        Emit one span per location, in order.

        A serialization failure stops the batch; spans already emitted for
        earlier locations stay emitted.
        """
        emitted = 0
        for index, location in enumerate(locations):
            try:
                self.emitter.emit_gps_location(bucket, location.model_dump())
            except Exception:
                self._logger.error(
                    f"GPS batch aborted at location {index}",
                    extra={"extra_data": {
                        "bucket": bucket,
                        "index": index,
                        "emitted": emitted,
                        "total": len(locations),
                    }}
                )
                raise
            emitted += 1

        self._logger.info(
            f"GPS batch accepted for bucket {bucket}",
            extra={"extra_data": {"bucket": bucket, "locations": emitted}}
        )
        return emitted
