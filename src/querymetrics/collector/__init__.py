"""
Collector module - query definitions, row mapping, execution and dispatch.
"""

from querymetrics.collector.config import CollectorConfig, QueryDefinition, parse_duration
from querymetrics.collector.dispatcher import QueryDispatcher
from querymetrics.collector.executor import QueryExecutor
from querymetrics.collector.mapper import Row, RowMapper
from querymetrics.collector.registry import QueryRegistry
from querymetrics.collector.runner import CollectionRunner

__all__ = [
    "CollectorConfig",
    "QueryDefinition",
    "parse_duration",
    "Row",
    "RowMapper",
    "QueryExecutor",
    "QueryDispatcher",
    "QueryRegistry",
    "CollectionRunner",
]
