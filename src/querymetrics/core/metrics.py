"""
Collection cycle statistics and reporting.

Provides:
- Per-query outcome tracking
- Aggregated statistics per cycle
- Rich output formatting
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator

import structlog
from rich.console import Console
from rich.table import Table

logger = structlog.get_logger()


class QueryStatus(Enum):
    """Final outcome of one query in a cycle."""

    OK = "ok"
    TIMEOUT = "timeout"
    FAILED = "failed"
    ROW_ERROR = "row_error"


@dataclass
class QueryStats:
    """Outcome and counters for a single query execution."""

    measurement: str
    query: str
    status: QueryStatus = QueryStatus.OK
    rows: int = 0
    samples: int = 0
    field_errors: int = 0
    row_errors: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    duration_ms: float = 0.0
    error: str | None = None

    def fail(self, status: QueryStatus, error: str) -> None:
        """Record a terminal failure."""
        self.status = status
        self.error = error

    def finalize(self) -> None:
        """Finalize the stats after execution completes."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000

    @property
    def succeeded(self) -> bool:
        return self.status == QueryStatus.OK

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "measurement": self.measurement,
            "query": self.query,
            "status": self.status.value,
            "rows": self.rows,
            "samples": self.samples,
            "field_errors": self.field_errors,
            "row_errors": self.row_errors,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass
class CycleStats:
    """Aggregated statistics across all queries of a cycle."""

    total_queries: int = 0
    succeeded: int = 0
    timed_out: int = 0
    failed: int = 0
    row_errors: int = 0
    total_rows: int = 0
    total_samples: int = 0
    field_errors: int = 0
    max_duration_ms: float = 0.0
    by_measurement: dict[str, list[QueryStats]] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Share of queries that finished cleanly, as percentage."""
        if self.total_queries == 0:
            return 0.0
        return (self.succeeded / self.total_queries) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_queries": self.total_queries,
            "succeeded": self.succeeded,
            "timed_out": self.timed_out,
            "failed": self.failed,
            "row_errors": self.row_errors,
            "total_rows": self.total_rows,
            "total_samples": self.total_samples,
            "field_errors": self.field_errors,
            "max_duration_ms": self.max_duration_ms,
            "success_rate": self.success_rate,
            "by_measurement": {
                name: [stats.to_dict() for stats in entries]
                for name, entries in self.by_measurement.items()
            },
        }


class StatsCollector:
    """
    Collects per-query statistics for a collection cycle.

    Usage:
        stats = StatsCollector()

        async with stats.track_query(definition) as query_stats:
            query_stats.rows += 1

        stats.print_summary()
    """

    def __init__(self) -> None:
        self._stats: list[QueryStats] = []
        self._console = Console()
        self._lock = asyncio.Lock()

    @property
    def all_stats(self) -> list[QueryStats]:
        """Get all collected stats."""
        return self._stats.copy()

    @asynccontextmanager
    async def track_query(self, measurement: str, query: str) -> AsyncIterator[QueryStats]:
        """
        Track a single query execution.

        Args:
            measurement: Measurement the query feeds.
            query: Query text.

        Yields:
            QueryStats object to fill in.
        """
        stats = QueryStats(measurement=measurement, query=query)

        try:
            yield stats
        finally:
            stats.finalize()
            async with self._lock:
                self._stats.append(stats)

            logger.debug(
                "query_complete",
                measurement=measurement,
                status=stats.status.value,
                rows=stats.rows,
                samples=stats.samples,
                duration_ms=stats.duration_ms,
            )

    def aggregate(self) -> CycleStats:
        """
        Aggregate all collected statistics.

        Returns:
            CycleStats with totals and per-measurement breakdown.
        """
        agg = CycleStats()

        for stats in self._stats:
            agg.total_queries += 1
            agg.total_rows += stats.rows
            agg.total_samples += stats.samples
            agg.field_errors += stats.field_errors
            agg.max_duration_ms = max(agg.max_duration_ms, stats.duration_ms)

            if stats.status == QueryStatus.OK:
                agg.succeeded += 1
            elif stats.status == QueryStatus.TIMEOUT:
                agg.timed_out += 1
            elif stats.status == QueryStatus.ROW_ERROR:
                agg.row_errors += 1
            else:
                agg.failed += 1

            agg.by_measurement.setdefault(stats.measurement, []).append(stats)

        return agg

    def print_summary(self) -> None:
        """Print a summary table to console."""
        agg = self.aggregate()

        self._console.print("\n[bold cyan]Collection Summary[/bold cyan]")
        self._console.print(f"Queries: {agg.total_queries}")
        self._console.print(f"Succeeded: {agg.succeeded}")
        self._console.print(f"Timed out: {agg.timed_out}")
        self._console.print(f"Failed: {agg.failed + agg.row_errors}")
        self._console.print(f"Samples: {agg.total_samples}")
        self._console.print(f"Slowest query: {agg.max_duration_ms:.2f}ms")

        if not self._stats:
            return

        table = Table(show_header=True)
        table.add_column("Measurement")
        table.add_column("Status")
        table.add_column("Rows", justify="right")
        table.add_column("Samples", justify="right")
        table.add_column("Field errors", justify="right")
        table.add_column("Duration (ms)", justify="right")

        for stats in sorted(self._stats, key=lambda s: s.measurement):
            status = (
                f"[green]{stats.status.value}[/green]"
                if stats.succeeded
                else f"[red]{stats.status.value}[/red]"
            )
            table.add_row(
                stats.measurement,
                status,
                str(stats.rows),
                str(stats.samples),
                str(stats.field_errors),
                f"{stats.duration_ms:.2f}",
            )

        self._console.print(table)

    def clear(self) -> None:
        """Clear all collected statistics."""
        self._stats.clear()
