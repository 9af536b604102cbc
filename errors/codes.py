"""
Error code catalog for the events gateway.

This module defines the closed set of error codes the gateway reports:
authorization and input failures on the ingestion routes, span
serialization failures, time-series backend failures, and
configuration problems detected at startup.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the application.

    Client errors (4xx) are reported immediately and never retried.
    Everything else surfaces as a 500 with details kept in the log.
    """

    # Client errors (4xx)
    AUTHORIZATION_FAILURE = "AUTHORIZATION_FAILURE"
    """Missing or mismatched shared-secret token (HTTP 401)"""

    MALFORMED_INPUT = "MALFORMED_INPUT"
    """Request body or header could not be decoded (HTTP 400)"""

    # Server errors (5xx)
    SERIALIZATION_FAILURE = "SERIALIZATION_FAILURE"
    """Accepted payload could not be serialized into a span (HTTP 500)"""

    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    """Network-level failure reaching the time-series store (HTTP 500)"""

    BACKEND_ERROR = "BACKEND_ERROR"
    """Time-series store answered with a failure status or undecodable body (HTTP 500)"""

    CONFIGURATION_MISSING = "CONFIGURATION_MISSING"
    """Required secret or credential not provisioned; raised at startup only"""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.AUTHORIZATION_FAILURE: 401,
    ErrorCode.MALFORMED_INPUT: 400,
    ErrorCode.SERIALIZATION_FAILURE: 500,
    ErrorCode.BACKEND_UNAVAILABLE: 500,
    ErrorCode.BACKEND_ERROR: 500,
    ErrorCode.CONFIGURATION_MISSING: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
