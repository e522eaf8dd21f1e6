import orjson
import pytest
import structlog

from conftest import make_definition
from querymetrics.collector.registry import QueryRegistry
from querymetrics.collector.runner import CollectionRunner
from querymetrics.core.log_config import configure_logging


@pytest.fixture
def registry(config_manager):
    return QueryRegistry(config_manager)


@pytest.mark.asyncio
async def test_run_cycle_uses_registry_definitions(registry, source, reporter):
    source.add("SELECT a", ["value"], [(1,), (2,)])
    source.add("SELECT b", ["value"], [(3,)], delay=5)
    registry.register(make_definition(measurement="a", query="SELECT a"))
    registry.register(make_definition(measurement="b", query="SELECT b", timeout="50ms"))
    registry.register(make_definition(measurement="c", query="SELECT c"))
    runner = CollectionRunner(registry, source, reporter=reporter)

    samples = await runner.run_cycle()

    assert [s.value for s in samples] == [1.0, 2.0]
    stats = runner.get_stats()
    assert stats.total_queries == 3
    assert stats.succeeded == 1
    assert stats.timed_out == 1
    assert stats.failed == 1
    assert stats.total_samples == 2
    assert set(stats.by_measurement) == {"a", "b", "c"}


@pytest.mark.asyncio
async def test_each_cycle_starts_fresh(registry, source, reporter):
    source.add("SELECT a", ["value"], [(1,)])
    registry.register(make_definition(query="SELECT a"))
    runner = CollectionRunner(registry, source, reporter=reporter)

    await runner.run_cycle()
    samples = await runner.run_cycle()

    assert len(samples) == 1
    assert runner.get_stats().total_queries == 1


@pytest.mark.asyncio
async def test_run_cycle_with_explicit_definitions(registry, source, reporter):
    source.add("SELECT x", ["value"], [(7,)])
    runner = CollectionRunner(registry, source, reporter=reporter)

    samples = await runner.run_cycle([make_definition(query="SELECT x")])
    empty = await runner.run_cycle([])

    assert [s.value for s in samples] == [7.0]
    assert len(empty) == 0
    assert source.executed == ["SELECT x"]


@pytest.mark.asyncio
async def test_print_stats(registry, source, reporter, capsys):
    source.add("SELECT a", ["value"], [(1,)])
    registry.register(make_definition(measurement="table_rows", query="SELECT a"))
    runner = CollectionRunner(registry, source, reporter=reporter)

    await runner.run_cycle()
    runner.print_stats()

    out = capsys.readouterr().out
    assert "Collection Summary" in out
    assert "table_rows" in out


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_configure_logging_json(capsys, reset_structlog):
    configure_logging("DEBUG", json=True)

    structlog.get_logger().info("query_timeout", query="SELECT 1")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = orjson.loads(line)
    assert record["event"] == "query_timeout"
    assert record["query"] == "SELECT 1"
    assert record["level"] == "info"


def test_configure_logging_filters_level(capsys, reset_structlog):
    configure_logging("WARNING", json=True)

    structlog.get_logger().info("hidden")
    structlog.get_logger().warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out
