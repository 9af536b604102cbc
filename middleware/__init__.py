"""
Middleware components for the events gateway.

This module contains FastAPI middleware for request correlation and
access logging.
"""

from middleware.request_id import RequestIDMiddleware, request_id_var, REQUEST_ID_HEADER
from middleware.access_log import AccessLogMiddleware

__all__ = [
    "RequestIDMiddleware",
    "request_id_var",
    "REQUEST_ID_HEADER",
    "AccessLogMiddleware",
]
