"""
Access logging middleware.

Logs one line when a request arrives and one when its response leaves,
and wraps the request in an "http-request" span so ingestion spans are
recorded as its children.
"""

import logging
import time
from typing import Callable, Optional

from fastapi import Request, Response
from opentelemetry.trace import Tracer
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging with latency.

    Args:
        app: The ASGI application to wrap
        tracer: Tracer used for the per-request span; no span is opened when None
    """

    def __init__(self, app: ASGIApp, tracer: Optional[Tracer] = None):
        super().__init__(app)
        self.tracer = tracer

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        logger.info(
            "request",
            extra={"extra_data": {
                "method": request.method,
                "uri": request.url.path,
                "referrer": request.headers.get("referer", ""),
                "user_agent": request.headers.get("user-agent", ""),
            }}
        )

        start = time.perf_counter()
        if self.tracer is None:
            response = await call_next(request)
        else:
            with self.tracer.start_as_current_span(
                "http-request",
                attributes={"request_id": request_id_var.get("")},
            ) as span:
                response = await call_next(request)
                span.set_attribute("http.status_code", response.status_code)
        latency_ms = (time.perf_counter() - start) * 1000

        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "response_status",
            extra={"extra_data": {
                "status": response.status_code,
                "latency_ms": round(latency_ms, 3),
            }}
        )
        return response
