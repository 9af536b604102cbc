"""
Health endpoints: /health, /health/live and /health/ready.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from health.service import HealthCheckService

SERVICE_NAME = "Events Gateway"
SERVICE_VERSION = "1.0.0"

router = APIRouter(tags=["health"])


def get_health_service(request: Request) -> HealthCheckService:
    return request.app.state.health_check_service


@router.get("/health")
async def health_basic(request: Request):
    """Returns 200 while the service is accepting requests."""
    result = await get_health_service(request).check_health()
    return {
        "status": result["status"],
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": result["timestamp"]
    }


@router.get("/health/ready")
async def health_ready(request: Request):
    """
    Readiness check with dependency verification.

    Returns 503 with the failure reasons when ClickHouse is unreachable.
    """
    health_status = await get_health_service(request).check_readiness()
    response_data = {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        **health_status.to_dict(),
    }

    if health_status.status == "unhealthy":
        response_data["failure_reasons"] = [
            {"dependency": dep.name, "error": dep.error}
            for dep in health_status.dependencies
            if not dep.healthy
        ]
        return JSONResponse(status_code=503, content=response_data)

    return response_data


@router.get("/health/live")
async def health_live(request: Request):
    """Returns 200 while the process is running, regardless of dependencies."""
    result = await get_health_service(request).check_liveness()
    return {
        "status": result["status"],
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": result["timestamp"]
    }
