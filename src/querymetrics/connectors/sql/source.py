"""
SQLAlchemy-backed data source.

Provides:
- Async engine lifecycle (connect / dispose)
- Health checks
- Streaming query execution, one pooled connection per query
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncResult, create_async_engine

from querymetrics.core.base import AbstractConnector
from querymetrics.core.exceptions import ConnectorError
from querymetrics.connectors.sql.config import DatabaseConfig

logger = structlog.get_logger()


class SQLQueryResult:
    """
    Streaming result that owns the connection it runs on.

    Closing the result returns the connection to the pool.
    """

    def __init__(self, connection: AsyncConnection, result: AsyncResult) -> None:
        self._connection = connection
        self._result = result
        self._closed = False

    def keys(self) -> Sequence[str]:
        return list(self._result.keys())

    async def __aiter__(self) -> AsyncIterator[Sequence[Any]]:
        async for row in self._result:
            yield tuple(row)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._result.close()
        finally:
            await self._connection.close()


class SQLDataSource(AbstractConnector):
    """
    Data source over a SQLAlchemy AsyncEngine.

    Safe to share between concurrently running queries: every
    ``execute`` call checks out its own connection.

    Usage:
        source = SQLDataSource(DatabaseConfig(url="mysql+aiomysql://..."))

        async with source:
            result = await source.execute("SELECT 1 AS one")
            try:
                async for row in result:
                    print(row)
            finally:
                await result.close()
    """

    def __init__(self, config: DatabaseConfig, engine: AsyncEngine | None = None) -> None:
        """
        Initialize the data source.

        Args:
            config: Connection settings.
            engine: Pre-built engine to use instead of creating one.
        """
        super().__init__("sql", backend=config.to_url().get_backend_name())
        self._config = config
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    async def _do_connect(self) -> None:
        url = self._config.to_url()

        logger.info(
            "sql_source_connecting",
            url=url.render_as_string(hide_password=True),
        )

        if self._engine is None:
            try:
                self._engine = create_async_engine(url, **self._config.to_engine_kwargs())
            except Exception as e:
                raise ConnectorError(
                    f"Failed to create engine: {e}",
                    connector_type="sql",
                    operation="connect",
                ) from e

        logger.info("sql_source_connected", backend=url.get_backend_name())

    async def _do_disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        logger.info("sql_source_disconnected")

    async def _do_health_check(self) -> bool:
        engine = self._require_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchall()
        return True

    async def execute(self, query: str) -> SQLQueryResult:
        """
        Start streaming a query.

        The query text is sent as-is; colons are escaped so SQLAlchemy
        doesn't read ``:name`` as a bind parameter.
        """
        engine = self._require_engine()
        connection = await engine.connect()
        try:
            result = await connection.stream(text(query.replace(":", "\\:")))
        except BaseException:
            await connection.close()
            raise
        return SQLQueryResult(connection, result)

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ConnectorError(
                "Data source is not connected",
                connector_type="sql",
                operation="execute",
            )
        return self._engine
