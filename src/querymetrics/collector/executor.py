"""
Single-query execution under a deadline.
"""

import asyncio

import structlog

from querymetrics.collector.config import QueryDefinition
from querymetrics.collector.mapper import Row, RowMapper
from querymetrics.core.base import DataSource, QueryResult, Reporter
from querymetrics.core.exceptions import QueryExecutionError, QueryTimeoutError, RowReadError
from querymetrics.core.metrics import QueryStats, QueryStatus, StatsCollector
from querymetrics.core.samples import SampleSink, Samples


class QueryExecutor:
    """
    Runs one query definition and maps its rows into samples.

    The definition's timeout bounds everything from the start of the call:
    executing the query and fetching every row. Samples are staged per query
    and only handed to the shared sink if the query didn't time out, so a
    timed-out query contributes nothing. A ``TimeoutError`` raised by the
    data source before the deadline is treated like any other driver error.

    Every failure is reported and swallowed; ``execute`` never raises an
    ``Exception``, which is what lets the dispatcher treat queries as fully
    independent.

    Usage:
        executor = QueryExecutor(source)
        stats = await executor.execute(definition, samples)
    """

    def __init__(
        self,
        data_source: DataSource,
        reporter: Reporter | None = None,
        stats: StatsCollector | None = None,
        mapper: RowMapper | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            data_source: Shared source to run queries against.
            reporter: Diagnostic reporter (structlog logger by default).
            stats: Optional collector receiving one QueryStats per call.
            mapper: Row mapper; built with the same reporter if omitted.
        """
        self._data_source = data_source
        self._reporter: Reporter = reporter or structlog.get_logger()
        self._stats = stats
        self._mapper = mapper or RowMapper(self._reporter)

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    async def execute(self, definition: QueryDefinition, sink: SampleSink) -> QueryStats:
        """
        Execute one definition and emit its samples into ``sink``.

        Returns:
            Outcome and counters for this execution.
        """
        if self._stats is None:
            stats = QueryStats(measurement=definition.measurement, query=definition.query)
            try:
                await self._execute(definition, sink, stats)
            finally:
                stats.finalize()
            return stats

        async with self._stats.track_query(definition.measurement, definition.query) as stats:
            await self._execute(definition, sink, stats)
        return stats

    async def _execute(
        self,
        definition: QueryDefinition,
        sink: SampleSink,
        stats: QueryStats,
    ) -> None:
        staged = Samples()
        deadline = asyncio.timeout(definition.timeout_seconds)

        try:
            async with deadline:
                await self._run(definition, staged, stats)
        except TimeoutError as e:
            if not deadline.expired():
                # Raised by the data source itself, not by our deadline
                stats.fail(QueryStatus.FAILED, str(e))
                self._reporter.error(
                    "query_failed",
                    measurement=definition.measurement,
                    query=definition.query,
                    error=str(e),
                )
                return
            error = QueryTimeoutError(
                f"Query exceeded timeout of {definition.timeout_seconds}s",
                query=definition.query,
            )
            stats.fail(QueryStatus.TIMEOUT, error.message)
            stats.samples = 0
            self._reporter.error(
                "query_timeout",
                measurement=definition.measurement,
                query=definition.query,
                timeout_s=definition.timeout_seconds,
            )
            return
        except QueryExecutionError as e:
            stats.fail(QueryStatus.FAILED, e.message)
            self._reporter.error(
                "query_failed",
                measurement=definition.measurement,
                query=definition.query,
                error=str(e.__cause__ or e),
            )
            return
        except RowReadError as e:
            stats.fail(QueryStatus.ROW_ERROR, e.message)
            self._reporter.error(
                "row_read_failed",
                measurement=definition.measurement,
                query=definition.query,
                row=stats.rows,
                error=str(e.__cause__ or e),
            )
        except Exception as e:
            stats.fail(QueryStatus.FAILED, str(e))
            self._reporter.error(
                "query_failed",
                measurement=definition.measurement,
                query=definition.query,
                error=str(e),
            )
            return

        # Rows read before a read failure still count
        try:
            if isinstance(sink, Samples):
                sink.extend(staged)
            else:
                for sample in staged:
                    sink.add_metric(sample.name, sample.fields, sample.labels)
        except Exception as e:
            stats.fail(QueryStatus.FAILED, str(e))
            self._reporter.error(
                "sink_append_failed",
                measurement=definition.measurement,
                query=definition.query,
                error=str(e),
            )

    async def _run(
        self,
        definition: QueryDefinition,
        staged: Samples,
        stats: QueryStats,
    ) -> None:
        try:
            result = await self._data_source.execute(definition.query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise QueryExecutionError(
                f"Query failed: {e}",
                query=definition.query,
            ) from e

        try:
            await self._consume(result, definition, staged, stats)
        finally:
            try:
                await result.close()
            except Exception as e:
                self._reporter.warning(
                    "result_close_failed",
                    measurement=definition.measurement,
                    query=definition.query,
                    error=str(e),
                )

    async def _consume(
        self,
        result: QueryResult,
        definition: QueryDefinition,
        staged: Samples,
        stats: QueryStats,
    ) -> None:
        try:
            columns = list(result.keys())
        except Exception as e:
            raise RowReadError(f"Failed to get columns: {e}", query=definition.query) from e

        rows = aiter(result)
        while True:
            try:
                values = await anext(rows)
                row = Row.from_columns(columns, values)
            except StopAsyncIteration:
                return
            except asyncio.CancelledError:
                raise
            except Exception as e:
                raise RowReadError(f"Failed to read row: {e}", query=definition.query) from e

            stats.rows += 1
            try:
                emitted = self._mapper.map_row(row, definition, staged)
            except Exception as e:
                stats.row_errors += 1
                self._reporter.error(
                    "row_parse_failed",
                    measurement=definition.measurement,
                    query=definition.query,
                    error=str(e),
                )
                continue

            stats.samples += emitted
            stats.field_errors += len(dict.fromkeys(definition.metric_fields)) - emitted
