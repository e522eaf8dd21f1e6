"""
Core module - Base abstractions, configuration, samples, and statistics.
"""

from querymetrics.core.base import (
    AbstractConnector,
    ConnectorState,
    DataSource,
    QueryResult,
    Reporter,
)
from querymetrics.core.config import ConfigManager
from querymetrics.core.exceptions import (
    ConfigurationError,
    ConnectorError,
    FieldConversionError,
    QueryError,
    QueryExecutionError,
    QueryMetricsError,
    QueryTimeoutError,
    RowReadError,
    TemplateError,
)
from querymetrics.core.log_config import configure_logging
from querymetrics.core.metrics import CycleStats, QueryStats, QueryStatus, StatsCollector
from querymetrics.core.samples import MetricSample, SampleSink, Samples
from querymetrics.core.sanitize import clean_name, sanitize_label_value
from querymetrics.core.templating import TemplateEngine

__all__ = [
    "AbstractConnector",
    "ConnectorState",
    "DataSource",
    "QueryResult",
    "Reporter",
    "ConfigManager",
    "TemplateEngine",
    "configure_logging",
    "MetricSample",
    "SampleSink",
    "Samples",
    "CycleStats",
    "QueryStats",
    "QueryStatus",
    "StatsCollector",
    "clean_name",
    "sanitize_label_value",
    "QueryMetricsError",
    "ConfigurationError",
    "ConnectorError",
    "TemplateError",
    "QueryError",
    "QueryTimeoutError",
    "QueryExecutionError",
    "RowReadError",
    "FieldConversionError",
]
