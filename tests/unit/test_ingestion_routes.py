"""
Unit tests for the ingestion route handlers.

The handlers are called directly with a mocked Request so tests can see
whether the body was read.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi import Request

from errors.codes import ErrorCode
from errors.exceptions import AppException
from ingestion.emitter import SpanEmitter
from ingestion.routes import extract_emitter_token, upload_gps_data
from ingestion.service import IngestionService


def make_request(service: IngestionService, body: bytes = b'{"locations":[]}', headers=None) -> MagicMock:
    request = MagicMock(spec=Request)
    request.app.state.ingestion_service = service
    request.body = AsyncMock(return_value=body)
    request.headers.raw = headers or []
    return request


@pytest.fixture
def service(settings, tracer) -> IngestionService:
    return IngestionService(settings, SpanEmitter(tracer))


class TestUploadGPSData:
    """Tests for the GPS upload handler."""

    @pytest.mark.asyncio
    async def test_wrong_token_rejected_without_reading_body(self, service):
        request = make_request(service)

        with pytest.raises(AppException) as exc_info:
            await upload_gps_data("phone-1", "nope", request)

        assert exc_info.value.error_code == ErrorCode.AUTHORIZATION_FAILURE
        request.body.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_token_reads_body_and_answers_ok(self, service):
        request = make_request(service)

        response = await upload_gps_data("phone-1", "gps-secret-456", request)

        assert response.result == "ok"
        request.body.assert_awaited_once()


class TestExtractEmitterToken:
    """Tests for reading the emitter header."""

    def test_absent_header_is_none(self, service):
        assert extract_emitter_token(make_request(service)) is None

    def test_header_name_is_case_insensitive(self, service):
        request = make_request(service, headers=[(b"Emitter", b"embedded-secret-123")])

        assert extract_emitter_token(request) == "embedded-secret-123"

    def test_non_ascii_value_is_malformed(self, service):
        request = make_request(service, headers=[(b"emitter", "töken".encode("latin-1"))])

        with pytest.raises(AppException) as exc_info:
            extract_emitter_token(request)

        assert exc_info.value.error_code == ErrorCode.MALFORMED_INPUT
