"""
Connectors module - data source implementations.
"""

from querymetrics.connectors.base import AbstractConnector, ConnectorState, connector_session

__all__ = [
    "AbstractConnector",
    "ConnectorState",
    "connector_session",
]
