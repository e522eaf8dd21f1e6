"""
SQL connector package using SQLAlchemy's asyncio engine.
"""

from querymetrics.connectors.sql.config import DatabaseConfig
from querymetrics.connectors.sql.source import SQLDataSource, SQLQueryResult

__all__ = [
    "DatabaseConfig",
    "SQLDataSource",
    "SQLQueryResult",
]
