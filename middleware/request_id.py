"""
Request ID middleware for request correlation.

Every request gets an id, taken from the X-Request-ID header when the
caller sent one and generated otherwise. The id is stored on
request.state for the error handlers, in a context variable for the JSON
log formatter, and echoed on the response.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Read by telemetry.JSONFormatter on every log record
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to the request, its log lines and its response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Reset so the id does not leak into the next request on this task
            request_id_var.reset(token)


def get_request_id() -> str:
    """
    Get the current request ID from the context variable.

    Returns:
        The current request ID, or empty string if not in a request context
    """
    return request_id_var.get()
