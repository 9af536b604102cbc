"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Callable, Optional

import httpx
import pytest
from hypothesis import settings as hypothesis_settings, Verbosity, Phase
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from config.settings import Settings
from telemetry.service import TelemetryService

# Default profile: balanced for local development
hypothesis_settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
hypothesis_settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
hypothesis_settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

hypothesis_settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


EMBEDDED_TOKEN = "embedded-secret-123"
GPS_TOKEN = "gps-secret-456"


def make_settings(**overrides) -> Settings:
    """Build Settings without reading the process environment's .env files."""
    values = {
        "embedded_token": EMBEDDED_TOKEN,
        "gps_push_token": GPS_TOKEN,
        "clickhouse_url": "http://clickhouse.test:8123/",
        "clickhouse_user": "dashboard",
        "clickhouse_password": "ch-password",
        "otel_export_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ClickHouseStub:
    """
    In-process stand-in for the ClickHouse HTTP interface.

    Each dashboard query is recognised by a marker in its SQL text. Tests
    can make a query fail with a status, raise a transport error, or
    answer with an undecodable body.
    """

    MARKERS = {
        "co2_values": "toStartOfInterval",
        "co2_latest": "avg_co2",
        "hum_latest": "'humidity'",
    }

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.results = {
            "co2_values": {"data": [{"time": "2024-06-01 10:00:00", "co2_ppm": 612.5}], "rows": 1},
            "co2_latest": {"data": [{"avg_co2": 604.0}], "rows": 1},
            "hum_latest": {"data": [{"humidity": 48.2}], "rows": 1},
        }
        self.failures: dict[str, tuple[int, str]] = {}
        self.connect_errors: set[str] = set()
        self.garbage: set[str] = set()
        self.ping_status = 200
        self.before_response: Optional[Callable] = None

    def query_name(self, sql: str) -> str:
        for name, marker in self.MARKERS.items():
            if marker in sql:
                return name
        raise AssertionError(f"unexpected query: {sql}")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET" and request.url.path.endswith("/ping"):
            return httpx.Response(self.ping_status, text="Ok.\n")

        name = self.query_name(request.content.decode("utf-8"))
        if self.before_response is not None:
            await self.before_response(name)
        if name in self.connect_errors:
            raise httpx.ConnectError("Connection refused", request=request)
        if name in self.failures:
            status, body = self.failures[name]
            return httpx.Response(status, text=body)
        if name in self.garbage:
            return httpx.Response(200, text="not json {")
        return httpx.Response(200, json=self.results[name])


@pytest.fixture
def settings() -> Settings:
    """Settings with known test secrets."""
    return make_settings()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Collects finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    """Tracer provider that exports synchronously to the in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def tracer(tracer_provider: TracerProvider):
    return tracer_provider.get_tracer("tests")


@pytest.fixture
def telemetry(settings: Settings, tracer_provider: TracerProvider) -> TelemetryService:
    """Telemetry service that leaves the root logger alone."""
    return TelemetryService(settings, tracer_provider=tracer_provider, configure_logging=False)


@pytest.fixture
def clickhouse_stub() -> ClickHouseStub:
    return ClickHouseStub()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build Settings with overrides on top of the test defaults."""
    return make_settings


@pytest.fixture
def spans_named(span_exporter: InMemorySpanExporter) -> Callable[[str], list]:
    """Finished spans with the given name, in the order they ended."""
    def _spans_named(name: str) -> list:
        return [span for span in span_exporter.get_finished_spans() if span.name == name]
    return _spans_named
