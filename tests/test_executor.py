import time

import pytest

from conftest import make_definition
from querymetrics.collector.executor import QueryExecutor
from querymetrics.collector.mapper import RowMapper
from querymetrics.core.metrics import QueryStatus, StatsCollector
from querymetrics.core.samples import Samples

QUERY = "SELECT host, value FROM t"


@pytest.fixture
def executor(source, reporter):
    return QueryExecutor(source, reporter=reporter)


@pytest.mark.asyncio
async def test_execute_maps_every_row(source, reporter, executor):
    source.add(QUERY, ["HOST", "Value"], [("db 1", 1), ("db2", "2.5")])
    definition = make_definition(query=QUERY, label_fields=["host"])
    sink = Samples()

    stats = await executor.execute(definition, sink)

    assert [(s.value, dict(s.labels)) for s in sink] == [
        (1.0, {"host": "db_1"}),
        (2.5, {"host": "db2"}),
    ]
    assert stats.status == QueryStatus.OK
    assert stats.rows == 2
    assert stats.samples == 2
    assert source.closed == [QUERY]
    assert reporter.errors == []


@pytest.mark.asyncio
async def test_execute_timeout_reports_query_and_emits_nothing(source, reporter, executor):
    source.add(QUERY, ["value"], [(1,)], delay=5)
    definition = make_definition(query=QUERY, timeout="50ms")
    sink = Samples()

    start = time.perf_counter()
    stats = await executor.execute(definition, sink)

    assert time.perf_counter() - start < 2
    assert len(sink) == 0
    assert stats.status == QueryStatus.TIMEOUT
    assert reporter.events() == ["query_timeout"]
    assert reporter.errors[0][1]["query"] == QUERY


@pytest.mark.asyncio
async def test_timeout_while_streaming_discards_partial_rows(source, reporter, executor):
    rows = [(i,) for i in range(10)]
    source.add(QUERY, ["value"], rows, row_delay=0.05)
    definition = make_definition(query=QUERY, timeout="120ms")
    sink = Samples()

    stats = await executor.execute(definition, sink)

    assert stats.status == QueryStatus.TIMEOUT
    assert stats.rows > 0
    assert len(sink) == 0
    assert source.closed == [QUERY]
    assert reporter.events() == ["query_timeout"]


@pytest.mark.asyncio
async def test_execution_failure_is_reported(source, reporter, executor):
    definition = make_definition(query="SELEC broken")
    sink = Samples()

    stats = await executor.execute(definition, sink)

    assert stats.status == QueryStatus.FAILED
    assert len(sink) == 0
    (event, fields), = reporter.errors
    assert event == "query_failed"
    assert fields["query"] == "SELEC broken"
    assert "syntax error" in fields["error"]


@pytest.mark.asyncio
async def test_execution_error_from_source(source, reporter, executor):
    source.add(QUERY, ["value"], [], error=PermissionError("access denied"))

    stats = await executor.execute(make_definition(query=QUERY), Samples())

    assert stats.status == QueryStatus.FAILED
    assert reporter.errors[0][1]["error"] == "access denied"


@pytest.mark.asyncio
async def test_row_read_failure_keeps_earlier_rows(source, reporter, executor):
    source.add(QUERY, ["value"], [(1,), (2,), (3,), (4,)], fail_at_row=2)
    sink = Samples()

    stats = await executor.execute(make_definition(query=QUERY), sink)

    assert [s.value for s in sink] == [1.0, 2.0]
    assert stats.status == QueryStatus.ROW_ERROR
    assert stats.rows == 2
    assert reporter.events() == ["row_read_failed"]
    assert reporter.errors[0][1]["query"] == QUERY
    assert source.closed == [QUERY]


@pytest.mark.asyncio
async def test_driver_timeout_on_execute_is_a_failure(source, reporter):
    source.add(QUERY, ["value"], [(1,)], error=TimeoutError("connect timed out"))
    executor = QueryExecutor(source, reporter=reporter)

    stats = await executor.execute(make_definition(query=QUERY, timeout=10), Samples())

    assert stats.status == QueryStatus.FAILED
    assert reporter.events() == ["query_failed"]
    assert reporter.errors[0][1]["error"] == "connect timed out"


@pytest.mark.asyncio
async def test_driver_timeout_while_reading_keeps_earlier_rows(source, reporter):
    source.add(
        QUERY,
        ["value"],
        [(1,), (2,)],
        fail_at_row=1,
        row_error=TimeoutError("read timed out"),
    )
    sink = Samples()
    executor = QueryExecutor(source, reporter=reporter)

    stats = await executor.execute(make_definition(query=QUERY, timeout=10), sink)

    assert [s.value for s in sink] == [1.0]
    assert stats.status == QueryStatus.ROW_ERROR
    assert stats.samples == 1
    assert reporter.events() == ["row_read_failed"]
    assert source.closed == [QUERY]


@pytest.mark.asyncio
async def test_mapper_error_skips_only_that_row(source, reporter):
    class FlakyMapper(RowMapper):
        def map_row(self, row, definition, sink):
            if row["value"] == "2":
                raise RuntimeError("boom")
            return super().map_row(row, definition, sink)

    source.add(QUERY, ["value"], [(1,), (2,), (3,)])
    executor = QueryExecutor(source, reporter=reporter, mapper=FlakyMapper(reporter))
    sink = Samples()

    stats = await executor.execute(make_definition(query=QUERY), sink)

    assert [s.value for s in sink] == [1.0, 3.0]
    assert stats.status == QueryStatus.OK
    assert stats.row_errors == 1
    (event, fields), = reporter.errors
    assert event == "row_parse_failed"
    assert fields["query"] == QUERY


@pytest.mark.asyncio
async def test_field_errors_are_counted(source, reporter, executor):
    source.add(QUERY, ["a", "b"], [("abc", "42.5")])
    sink = Samples()

    stats = await executor.execute(
        make_definition(query=QUERY, metric_fields=["a", "b"]),
        sink,
    )

    assert len(sink) == 1
    assert stats.samples == 1
    assert stats.field_errors == 1
    assert reporter.events() == ["field_conversion_failed"]


@pytest.mark.asyncio
async def test_stats_collector_records_each_execution(source, reporter):
    source.add(QUERY, ["value"], [(1,)])
    collector = StatsCollector()
    executor = QueryExecutor(source, reporter=reporter, stats=collector)

    await executor.execute(make_definition(query=QUERY), Samples())
    await executor.execute(make_definition(query="missing"), Samples())

    statuses = [s.status for s in collector.all_stats]
    assert statuses == [QueryStatus.OK, QueryStatus.FAILED]
    assert all(s.end_time is not None for s in collector.all_stats)
