"""
Base connector classes - re-exports from core for convenience.
"""

from querymetrics.core.base import (
    AbstractConnector,
    ConnectorMetadata,
    ConnectorState,
    DataSource,
    QueryResult,
    connector_session,
)

__all__ = [
    "AbstractConnector",
    "ConnectorState",
    "ConnectorMetadata",
    "DataSource",
    "QueryResult",
    "connector_session",
]
