"""
HTTP endpoint for the dashboard.
"""

from fastapi import APIRouter, Request

from dashboard.service import DashboardResult, QueryAggregator

router = APIRouter(prefix="/api", tags=["dashboard"])


def get_query_aggregator(request: Request) -> QueryAggregator:
    return request.app.state.query_aggregator


@router.get("/dashboard", response_model=DashboardResult)
async def get_dashboard_data(request: Request) -> DashboardResult:
    """Recent CO2 series, latest CO2 average and latest humidity average."""
    return await get_query_aggregator(request).aggregate()
