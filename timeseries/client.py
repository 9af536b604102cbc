"""
Async client for the ClickHouse HTTP interface.

Queries are sent as the raw POST body with credentials in the
X-ClickHouse-User / X-ClickHouse-Key headers and the result format
forced to JSON. Failures are mapped onto the gateway's error taxonomy:
transport problems become BACKEND_UNAVAILABLE, failure statuses and
undecodable bodies become BACKEND_ERROR. Nothing is retried.
"""

import logging
from typing import Any, Optional

import httpx

from config.settings import Settings
from errors.exceptions import backend_error, backend_unavailable

logger = logging.getLogger(__name__)

# Upstream error bodies are truncated to this many characters in logs
MAX_ERROR_BODY_CHARS = 2000


class ClickHouseClient:
    """
    Thin wrapper around one shared httpx.AsyncClient.

    Attributes:
        settings: Application settings with the ClickHouse URL and credentials
        http_client: The underlying connection pool, closed by aclose()
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            settings: Application settings
            transport: Optional transport override (tests use httpx.MockTransport)
        """
        self.settings = settings
        self.url = settings.clickhouse_url
        self.http_client = httpx.AsyncClient(
            timeout=settings.clickhouse_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "X-ClickHouse-Format": "JSON",
            "X-ClickHouse-User": self.settings.clickhouse_user,
            "X-ClickHouse-Key": self.settings.clickhouse_password,
        }

    async def query(self, name: str, sql: str, params: Optional[dict[str, str]] = None) -> Any:
        """
        Run one query and return the decoded JSON document.

        Args:
            name: Short query name used in logs and error details
            sql: Query text; may reference {name:Type} placeholders
            params: Values for the placeholders, sent as param_<name>

        Raises:
            AppException: BACKEND_UNAVAILABLE or BACKEND_ERROR
        """
        query_params = {f"param_{key}": value for key, value in (params or {}).items()}

        try:
            response = await self.http_client.post(
                self.url,
                content=sql.encode("utf-8"),
                params=query_params,
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            logger.error(
                "Failed to fetch data from ClickHouse",
                extra={"extra_data": {"query": name, "error": str(e)}}
            )
            raise backend_unavailable(details={"query": name, "error": str(e)}) from e

        if not response.is_success:
            error_text = response.text[:MAX_ERROR_BODY_CHARS]
            logger.error(
                "ClickHouse responded with error",
                extra={"extra_data": {
                    "query": name,
                    "status": response.status_code,
                    "error_text": error_text,
                }}
            )
            raise backend_error(details={
                "query": name,
                "status": response.status_code,
                "body": error_text,
            })

        try:
            return response.json()
        except ValueError as e:
            raise backend_error(
                message="ClickHouse returned an undecodable body",
                details={
                    "query": name,
                    "error": str(e),
                    "body": response.text[:MAX_ERROR_BODY_CHARS],
                }
            ) from e

    async def ping(self) -> bool:
        """Return True if ClickHouse answers its /ping endpoint."""
        response = await self.http_client.get(httpx.URL(self.url).join("ping"))
        return response.is_success

    async def aclose(self) -> None:
        await self.http_client.aclose()
