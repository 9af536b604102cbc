from contextlib import asynccontextmanager
from typing import Optional
import logging

import httpx
from fastapi import FastAPI

from config.settings import Settings, get_settings
from dashboard.routes import router as dashboard_router
from dashboard.service import QueryAggregator
from errors.handlers import register_exception_handlers
from health.routes import router as health_router
from health.service import HealthCheckService
from ingestion.emitter import SpanEmitter
from ingestion.routes import router as ingestion_router
from ingestion.service import IngestionService
from middleware.access_log import AccessLogMiddleware
from middleware.request_id import RequestIDMiddleware
from telemetry.service import TelemetryService, initialize_telemetry
from timeseries.client import ClickHouseClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        "🚀 Starting events gateway",
        extra={"extra_data": {
            "environment": settings.environment.value,
            "port": settings.port,
        }}
    )

    yield

    logger.info("👋 Shutting down events gateway")
    await app.state.clickhouse.aclose()
    app.state.telemetry.shutdown()


def create_app(
    settings: Optional[Settings] = None,
    telemetry: Optional[TelemetryService] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Every component receives the same frozen Settings. Missing or invalid
    configuration raises ConfigurationError here, before a socket is bound.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        telemetry: Telemetry service to use; initialized from settings when omitted
        transport: Optional httpx transport for the ClickHouse client
    """
    settings = settings or get_settings()
    telemetry = telemetry or initialize_telemetry(settings)

    app = FastAPI(title="Events Gateway", version="1.0.0", lifespan=lifespan)

    clickhouse = ClickHouseClient(settings, transport=transport)
    emitter = SpanEmitter(telemetry.tracer)

    app.state.settings = settings
    app.state.telemetry = telemetry
    app.state.clickhouse = clickhouse
    app.state.ingestion_service = IngestionService(settings, emitter)
    app.state.query_aggregator = QueryAggregator(clickhouse, settings)
    app.state.health_check_service = HealthCheckService(clickhouse, check_timeout=5.0)

    register_exception_handlers(app)

    # Added last runs first: request id must be set before the access log line
    app.add_middleware(AccessLogMiddleware, tracer=telemetry.tracer)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(ingestion_router)
    app.include_router(dashboard_router)
    app.include_router(health_router)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
