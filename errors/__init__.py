"""
Error handling module for the events gateway.

This module provides structured error handling with:
- ErrorCode enum for the closed error taxonomy
- AppException class for application-specific exceptions
- Exception handlers for FastAPI integration
"""

from errors.codes import ErrorCode
from errors.exceptions import AppException
from errors.handlers import (
    ErrorResponse,
    handle_app_exception,
    handle_validation_exception,
    handle_unexpected_exception,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "ErrorResponse",
    "handle_app_exception",
    "handle_validation_exception",
    "handle_unexpected_exception",
    "register_exception_handlers",
]
