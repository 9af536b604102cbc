"""
Integration test fixtures.

The full application is built with create_app(), with ClickHouse replaced
by an httpx.MockTransport around the shared ClickHouseStub and spans
captured by the in-memory exporter.
"""
from typing import Generator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def app(settings, telemetry, clickhouse_stub) -> FastAPI:
    """Application wired to the test settings, tracer and ClickHouse stub."""
    return create_app(
        settings=settings,
        telemetry=telemetry,
        transport=httpx.MockTransport(clickhouse_stub),
    )


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client that runs the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def app_factory(settings_factory, telemetry, clickhouse_stub):
    """Build an application with settings overrides."""
    def _build(**overrides) -> FastAPI:
        return create_app(
            settings=settings_factory(**overrides),
            telemetry=telemetry,
            transport=httpx.MockTransport(clickhouse_stub),
        )
    return _build
