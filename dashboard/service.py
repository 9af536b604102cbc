"""
Dashboard aggregation over the span store.

The dashboard is built from three independent ClickHouse queries against
the exported spans table. They are issued concurrently and joined. By
default a single failed query fails the whole dashboard and the sibling
queries still in flight are cancelled. With partial results enabled, a
failed query leaves its field null instead, unless every query failed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel

from config.settings import Settings
from timeseries.client import ClickHouseClient

logger = logging.getLogger(__name__)


CO2_VALUES_QUERY = """
SELECT
    toStartOfInterval(parseDateTime64BestEffort(SpanAttributes['timestamp']), toIntervalMillisecond(10000)) AS time,
    avg(JSONExtractFloat(SpanAttributes['payload'], 'co2')) AS co2_ppm
FROM
    events.otel_traces
WHERE
    JSONHas(SpanAttributes['payload'], 'co2')
    AND SpanName = 'data'
    AND Timestamp >= now() - INTERVAL 3 HOUR
GROUP BY
    time
ORDER BY
    time DESC
"""

CO2_LATEST_QUERY = """
SELECT
    avg(JSONExtractFloat(SpanAttributes['payload'], 'co2')) AS avg_co2
FROM
    events.otel_traces
WHERE
    JSONHas(SpanAttributes['payload'], 'co2')
    AND SpanName = 'data'
    AND Timestamp >= now() - INTERVAL 2 MINUTE
"""

HUM_LATEST_QUERY = """
SELECT
    avg(JSONExtractFloat(SpanAttributes['payload'], 'humidity')) AS humidity
FROM
    events.otel_traces
WHERE
    JSONHas(SpanAttributes['payload'], 'humidity')
    AND SpanName = 'data'
    AND SpanAttributes['bucket'] = {bucket:String}
    AND Timestamp >= now() - INTERVAL 2 HOUR
"""


@dataclass(frozen=True)
class DashboardQuery:
    """One named query; name doubles as the result field name."""
    name: str
    sql: str
    params: dict[str, str] = field(default_factory=dict)


class DashboardResult(BaseModel):
    """
    Merged dashboard response. Each field is the JSON document ClickHouse
    returned for the matching query, or None for a failed query when
    partial results are enabled.
    """
    co2_values: Any = None
    co2_latest: Any = None
    hum_latest: Any = None


def _abandon(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            # Retrieve so asyncio does not report it as never retrieved
            task.exception()


class QueryAggregator:
    """
    Runs the dashboard queries concurrently and merges the results.

    Attributes:
        client: ClickHouse client shared with the rest of the app
        settings: Application settings (humidity bucket, partial-results flag)
    """

    def __init__(self, client: ClickHouseClient, settings: Settings):
        self.client = client
        self.settings = settings

    @property
    def partial_results(self) -> bool:
        return self.settings.dashboard_partial_results

    def queries(self) -> list[DashboardQuery]:
        return [
            DashboardQuery("co2_values", CO2_VALUES_QUERY),
            DashboardQuery("co2_latest", CO2_LATEST_QUERY),
            DashboardQuery("hum_latest", HUM_LATEST_QUERY, {"bucket": self.settings.humidity_bucket}),
        ]

    async def aggregate(self) -> DashboardResult:
        """
        Issue all dashboard queries and wait for their outcomes.

        Returns:
            DashboardResult with one field per query

        Raises:
            AppException: BACKEND_UNAVAILABLE or BACKEND_ERROR from the first
                failing query (every query, in partial mode)
        """
        queries = self.queries()
        start_time = time.perf_counter()
        tasks = [
            asyncio.create_task(self.client.query(q.name, q.sql, q.params), name=f"dashboard-{q.name}")
            for q in queries
        ]

        if self.partial_results:
            values = await self._gather_partial(queries, tasks)
        else:
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                _abandon(tasks)
                raise
            values = {q.name: result for q, result in zip(queries, results)}

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Dashboard aggregated",
            extra={"extra_data": {
                "duration_ms": round(duration_ms, 2),
                "failed_queries": [name for name, value in values.items() if value is None],
            }}
        )
        return DashboardResult(**values)

    async def _gather_partial(
        self,
        queries: list[DashboardQuery],
        tasks: list[asyncio.Task],
    ) -> dict[str, Optional[Any]]:
        results = await asyncio.gather(*tasks, return_exceptions=True)

        values: dict[str, Optional[Any]] = {}
        errors: list[BaseException] = []
        for query, result in zip(queries, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Dashboard query {query.name} failed, returning null",
                    extra={"extra_data": {"query": query.name, "error": repr(result)}}
                )
                errors.append(result)
                values[query.name] = None
            else:
                values[query.name] = result

        if len(errors) == len(queries):
            raise errors[0]
        return values
