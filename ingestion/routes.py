"""
HTTP endpoints for measurement and GPS ingestion.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, Response

from errors.exceptions import malformed_input
from ingestion.service import GPSUploadResponse, IngestionService

logger = logging.getLogger(__name__)

EMITTER_HEADER = b"emitter"

router = APIRouter(prefix="/api", tags=["ingestion"])


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def extract_emitter_token(request: Request) -> Optional[str]:
    """
    Read the emitter header.

    Returns None when the header is absent. A header value that is not
    visible ASCII text is rejected as MALFORMED_INPUT, which is logged
    separately from a missing header.
    """
    raw = next((value for name, value in request.headers.raw if name.lower() == EMITTER_HEADER), None)
    if raw is None:
        return None

    token = raw.decode("latin-1")
    if any(not (ch == "\t" or " " <= ch <= "~") for ch in token):
        logger.warning(
            "Rejected data request: invalid_header",
            extra={"extra_data": {"route": "data", "reason": "invalid_header"}}
        )
        raise malformed_input(
            message="Invalid emitter header",
            details={"route": "data", "reason": "invalid_header"}
        )
    return token


@router.post("/data")
async def upload_data(request: Request) -> Response:
    """
    Accept one generic measurement.

    Requires the `emitter` header to carry the configured token. Answers
    200 with an empty body; nothing is echoed back.
    """
    token = extract_emitter_token(request)
    body = await request.body()
    get_ingestion_service(request).ingest_measurement(token, body)
    return Response(status_code=200)


@router.post("/gps/{bucket}/{token}", response_model=GPSUploadResponse)
async def upload_gps_data(bucket: str, token: str, request: Request) -> GPSUploadResponse:
    """
    Accept a batch of GPS locations for a bucket.

    The token travels in the path. Every location becomes one span, in
    input order. The token is checked before the body is read.
    """
    service = get_ingestion_service(request)
    service.authorize_gps(token)
    body = await request.body()
    service.ingest_gps_batch(bucket, body)
    return GPSUploadResponse(result="ok")
