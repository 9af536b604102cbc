"""
Exception classes for the events gateway.

This module provides the AppException class and convenience factory
functions for creating application-specific exceptions with proper
error codes and HTTP status codes.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all application-specific errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code to return
    - details: Optional diagnostic context; logged, never sent to the client

    Example:
        raise AppException(
            error_code=ErrorCode.BACKEND_ERROR,
            message="ClickHouse responded with error",
            details={"query": "co2_latest", "status": 502, "body": "..."}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"AppException(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


# Convenience factory functions for common error types

def authorization_failure(
    message: str = "Authorization failed",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create an authorization failure exception."""
    return AppException(
        error_code=ErrorCode.AUTHORIZATION_FAILURE,
        message=message,
        details=details
    )


def malformed_input(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a malformed input exception."""
    return AppException(
        error_code=ErrorCode.MALFORMED_INPUT,
        message=message,
        details=details
    )


def serialization_failure(
    message: str = "Failed to serialize payload",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a serialization failure exception."""
    return AppException(
        error_code=ErrorCode.SERIALIZATION_FAILURE,
        message=message,
        details=details
    )


def backend_unavailable(
    message: str = "Failed to fetch data from ClickHouse",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a backend unavailable exception."""
    return AppException(
        error_code=ErrorCode.BACKEND_UNAVAILABLE,
        message=message,
        details=details
    )


def backend_error(
    message: str = "ClickHouse responded with error",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a backend error exception."""
    return AppException(
        error_code=ErrorCode.BACKEND_ERROR,
        message=message,
        details=details
    )
