"""
Unit tests for the health check service.

Tests liveness, basic health and the ClickHouse readiness check,
including timeouts and unexpected failures.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from health.service import DependencyHealth, HealthCheckService, HealthStatus


def make_clickhouse(ping=None) -> MagicMock:
    clickhouse = MagicMock()
    clickhouse.ping = ping or AsyncMock(return_value=True)
    return clickhouse


class TestLivenessAndHealth:
    """Tests for the dependency-free checks."""

    @pytest.mark.asyncio
    async def test_liveness_reports_alive(self):
        result = await HealthCheckService(make_clickhouse()).check_liveness()

        assert result["status"] == "alive"
        assert result["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_health_reports_ok_without_touching_clickhouse(self):
        clickhouse = make_clickhouse()

        result = await HealthCheckService(clickhouse).check_health()

        assert result["status"] == "ok"
        clickhouse.ping.assert_not_called()


class TestReadiness:
    """Tests for check_readiness."""

    @pytest.mark.asyncio
    async def test_healthy_when_ping_succeeds(self):
        status = await HealthCheckService(make_clickhouse()).check_readiness()

        assert status.status == "healthy"
        (dep,) = status.dependencies
        assert dep.name == "clickhouse"
        assert dep.healthy is True
        assert dep.error is None

    @pytest.mark.asyncio
    async def test_unhealthy_when_ping_returns_false(self):
        clickhouse = make_clickhouse(AsyncMock(return_value=False))

        status = await HealthCheckService(clickhouse).check_readiness()

        assert status.status == "unhealthy"
        assert "failure status" in status.dependencies[0].error

    @pytest.mark.asyncio
    async def test_unhealthy_when_ping_raises(self):
        clickhouse = make_clickhouse(AsyncMock(side_effect=ConnectionError("refused")))

        status = await HealthCheckService(clickhouse).check_readiness()

        assert status.status == "unhealthy"
        assert "refused" in status.dependencies[0].error

    @pytest.mark.asyncio
    async def test_unhealthy_when_ping_times_out(self):
        async def slow_ping():
            await asyncio.sleep(10)
            return True

        service = HealthCheckService(make_clickhouse(slow_ping), check_timeout=0.01)

        status = await service.check_readiness()

        assert status.status == "unhealthy"
        assert "timed out" in status.dependencies[0].error


class TestSerialization:
    """Tests for the health dataclasses' dict forms."""

    def test_dependency_health_omits_missing_error(self):
        data = DependencyHealth(name="clickhouse", healthy=True, response_time_ms=1.23456).to_dict()

        assert data == {"name": "clickhouse", "healthy": True, "response_time_ms": 1.23}

    @pytest.mark.asyncio
    async def test_health_status_to_dict(self):
        status = await HealthCheckService(make_clickhouse()).check_readiness()

        data = status.to_dict()

        assert isinstance(status, HealthStatus)
        assert data["status"] == "healthy"
        assert data["timestamp"].endswith("Z")
        assert data["dependencies"][0]["name"] == "clickhouse"
