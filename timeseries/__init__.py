"""
Time-series store access.
"""

from timeseries.client import ClickHouseClient

__all__ = ["ClickHouseClient"]
