import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from querymetrics.collector.config import QueryDefinition
from querymetrics.core.config import ConfigManager


class RecordingReporter:
    """Captures diagnostic reports instead of logging them."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, event: str, **fields: Any) -> None:
        self.records.append((level, event, fields))

    def debug(self, event: str, **fields: Any) -> None:
        self._record("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self._record("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._record("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._record("error", event, **fields)

    @property
    def errors(self) -> list[tuple[str, dict[str, Any]]]:
        return [(event, fields) for level, event, fields in self.records if level == "error"]

    def events(self, level: str = "error") -> list[str]:
        return [event for lvl, event, _ in self.records if lvl == level]


@dataclass
class FakeQuery:
    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    delay: float = 0.0
    row_delay: float = 0.0
    error: Exception | None = None
    fail_at_row: int | None = None
    row_error: Exception | None = None


class FakeResult:
    def __init__(self, source: "FakeDataSource", query: str, fake: FakeQuery) -> None:
        self._source = source
        self._query = query
        self._fake = fake

    def keys(self) -> list[str]:
        return list(self._fake.columns)

    async def __aiter__(self):
        for index, row in enumerate(self._fake.rows):
            if self._fake.row_delay:
                await asyncio.sleep(self._fake.row_delay)
            if self._fake.fail_at_row == index:
                raise self._fake.row_error or RuntimeError("connection lost while reading")
            yield row

    async def close(self) -> None:
        self._source.closed.append(self._query)


class FakeDataSource:
    """In-memory data source keyed by exact query text."""

    def __init__(self) -> None:
        self.queries: dict[str, FakeQuery] = {}
        self.executed: list[str] = []
        self.closed: list[str] = []

    def add(self, query: str, columns: list[str], rows: list[tuple[Any, ...]], **kwargs: Any) -> None:
        self.queries[query] = FakeQuery(columns=columns, rows=rows, **kwargs)

    async def execute(self, query: str) -> FakeResult:
        self.executed.append(query)
        fake = self.queries.get(query)
        if fake is None:
            raise RuntimeError(f"syntax error near {query!r}")
        if fake.delay:
            await asyncio.sleep(fake.delay)
        if fake.error is not None:
            raise fake.error
        return FakeResult(self, query, fake)


def make_definition(**overrides: Any) -> QueryDefinition:
    data: dict[str, Any] = {
        "measurement": "mysql_custom",
        "metric_fields": ["value"],
        "label_fields": [],
        "timeout": 1,
        "query": "SELECT value FROM t",
    }
    data.update(overrides)
    return QueryDefinition.model_validate(data)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def source() -> FakeDataSource:
    return FakeDataSource()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def config_manager(config_dir: Path) -> ConfigManager:
    return ConfigManager(config_dir=config_dir, load_system_env=False)
