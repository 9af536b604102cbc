"""
Dashboard aggregation over the ClickHouse span store.
"""

from dashboard.service import DashboardQuery, DashboardResult, QueryAggregator

__all__ = ["DashboardQuery", "DashboardResult", "QueryAggregator"]
