"""
querymetrics - turn SQL query results into labeled metric samples.

This library runs user-defined queries against a relational data source on
every collection cycle and maps each result row into metric samples:
- Concurrent, independent execution of all queries
- Per-query timeouts
- Row-to-sample mapping with name and label sanitization
- YAML configuration with Jinja/.env substitution
"""

from querymetrics.collector.config import CollectorConfig, QueryDefinition
from querymetrics.collector.dispatcher import QueryDispatcher
from querymetrics.collector.executor import QueryExecutor
from querymetrics.collector.mapper import Row, RowMapper
from querymetrics.collector.registry import QueryRegistry
from querymetrics.collector.runner import CollectionRunner
from querymetrics.core.config import ConfigManager
from querymetrics.core.samples import MetricSample, Samples

__version__ = "0.1.0"
__all__ = [
    "CollectionRunner",
    "CollectorConfig",
    "ConfigManager",
    "MetricSample",
    "QueryDefinition",
    "QueryDispatcher",
    "QueryExecutor",
    "QueryRegistry",
    "Row",
    "RowMapper",
    "Samples",
    "__version__",
]
