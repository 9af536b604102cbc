"""
Exception handlers for the events gateway.

This module provides FastAPI exception handlers that log every failure
with its diagnostic context and answer the client with the mapped HTTP
status and a minimal JSON body. Diagnostic details stay in the log.
"""

import logging
import uuid
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors.codes import ErrorCode
from errors.exceptions import AppException, malformed_input
from middleware.request_id import REQUEST_ID_HEADER

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """
    Error body returned to clients.

    Only the error code, a generic message and the request id are exposed;
    the status code carries the meaning.
    """
    error_code: str
    message: str
    request_id: str


def get_request_id(request: Request) -> str:
    """
    Get the request ID from the request state or generate a new one.

    Args:
        request: The FastAPI request object

    Returns:
        The request ID string
    """
    if hasattr(request.state, "request_id"):
        return request.state.request_id

    return str(uuid.uuid4())


def _describe_cause(exc: BaseException) -> Optional[str]:
    cause = exc.__cause__ or exc.__context__
    if cause is None:
        return None
    return f"{type(cause).__name__}: {cause}"


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle known application exceptions and convert to an error response.

    Client errors are logged at WARNING, everything else at ERROR. The log
    entry carries the error code, message, underlying cause and details
    (for backend errors this includes the upstream response body).

    Args:
        request: The FastAPI request object
        exc: The AppException that was raised

    Returns:
        JSONResponse with the mapped status code
    """
    request_id = get_request_id(request)

    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        "Application error occurred",
        extra={"extra_data": {
            "error_code": exc.error_code.value,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "cause": _describe_cause(exc),
            "details": exc.details,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }}
    )

    error_response = ErrorResponse(
        error_code=exc.error_code.value,
        message=exc.message,
        request_id=request_id,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
    )


async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Map FastAPI request validation errors onto MALFORMED_INPUT (400).

    Args:
        request: The FastAPI request object
        exc: The RequestValidationError raised by FastAPI

    Returns:
        JSONResponse with status 400
    """
    app_exc = malformed_input(
        message="Invalid request",
        details={"validation_errors": exc.errors()},
    )
    return await handle_app_exception(request, app_exc)


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions safely without exposing internal details.

    This handler catches all unhandled exceptions, logs the full stack trace
    for debugging, and returns a generic error response to the client.

    Args:
        request: The FastAPI request object
        exc: The unexpected exception that was raised

    Returns:
        JSONResponse with generic error message (no internal details exposed)
    """
    request_id = get_request_id(request)

    logger.error(
        "Unexpected error occurred",
        extra={"extra_data": {
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        }},
        exc_info=exc,
    )

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred. Please try again later.",
        request_id=request_id,
    )

    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(),
        # Served outside RequestIDMiddleware, so the header is not added there
        headers={REQUEST_ID_HEADER: request_id},
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    logger.info("Exception handlers registered successfully")
