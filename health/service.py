"""
Health check service for the events gateway.

This module provides the HealthCheckService class that reports liveness
and checks readiness of the ClickHouse store behind the dashboard.
Ingestion has no readiness dependency: spans are queued in-process and
exported in the background.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DependencyHealth:
    """
    Health status of a single dependency.

    Attributes:
        name: The name of the dependency (e.g., "clickhouse")
        healthy: Whether the dependency is healthy and responding
        response_time_ms: The time taken to check the dependency in milliseconds
        error: Optional error message if the dependency check failed
    """
    name: str
    healthy: bool
    response_time_ms: float
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "name": self.name,
            "healthy": self.healthy,
            "response_time_ms": round(self.response_time_ms, 2),
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class HealthStatus:
    """
    Overall health status of the service.

    Attributes:
        status: Overall status - "healthy" or "unhealthy"
        timestamp: When the health check was performed
        dependencies: List of individual dependency health statuses
    """
    status: str
    timestamp: datetime
    dependencies: list[DependencyHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class HealthCheckService:
    """
    Service for checking the health of the gateway's dependencies.

    Attributes:
        clickhouse: ClickHouse client exposing an async ping()
        check_timeout: Timeout in seconds for each dependency check
    """

    def __init__(self, clickhouse: Any, check_timeout: float = 5.0):
        self.clickhouse = clickhouse
        self.check_timeout = check_timeout

    async def check_readiness(self) -> HealthStatus:
        """
        Check all dependencies for readiness.

        Returns:
            HealthStatus: The aggregate health status with individual dependency statuses
        """
        dependencies = [await self._check_clickhouse()]
        status = "healthy" if all(dep.healthy for dep in dependencies) else "unhealthy"

        return HealthStatus(
            status=status,
            timestamp=_utc_now(),
            dependencies=dependencies
        )

    async def check_liveness(self) -> dict[str, Any]:
        """
        Simple liveness check - process is running.

        Returns:
            dict: A simple status response with "alive" status and timestamp
        """
        return {
            "status": "alive",
            "timestamp": _utc_now().isoformat().replace("+00:00", "Z")
        }

    async def check_health(self) -> dict[str, Any]:
        """
        Basic health check - service is accepting requests.

        Returns:
            dict: A simple status response indicating the service is up
        """
        return {
            "status": "ok",
            "timestamp": _utc_now().isoformat().replace("+00:00", "Z")
        }

    async def _check_clickhouse(self) -> DependencyHealth:
        """
        Ping ClickHouse with a timeout.

        Returns:
            DependencyHealth: The health status of ClickHouse
        """
        start_time = time.perf_counter()

        try:
            result = await asyncio.wait_for(
                self.clickhouse.ping(),
                timeout=self.check_timeout
            )
            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if result:
                logger.debug(f"ClickHouse health check passed in {elapsed_ms:.2f}ms")
                return DependencyHealth(
                    name="clickhouse",
                    healthy=True,
                    response_time_ms=elapsed_ms
                )
            logger.warning(f"ClickHouse ping returned failure after {elapsed_ms:.2f}ms")
            return DependencyHealth(
                name="clickhouse",
                healthy=False,
                response_time_ms=elapsed_ms,
                error="ClickHouse ping returned a failure status"
            )

        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"ClickHouse health check timed out after {self.check_timeout} seconds"
            logger.warning(error_msg)
            return DependencyHealth(
                name="clickhouse",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            error_msg = f"ClickHouse health check failed: {str(e)}"
            logger.error(error_msg)
            return DependencyHealth(
                name="clickhouse",
                healthy=False,
                response_time_ms=elapsed_ms,
                error=error_msg
            )
