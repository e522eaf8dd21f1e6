"""
Collection runner tying registry, executor and dispatcher together.

Provides:
- One-call collection cycles
- Per-cycle statistics
- Summary output
"""

import time
from collections.abc import Sequence

import structlog

from querymetrics.collector.config import QueryDefinition
from querymetrics.collector.dispatcher import QueryDispatcher
from querymetrics.collector.executor import QueryExecutor
from querymetrics.collector.registry import QueryRegistry
from querymetrics.core.base import DataSource, Reporter
from querymetrics.core.metrics import CycleStats, StatsCollector
from querymetrics.core.samples import Samples

logger = structlog.get_logger()


class CollectionRunner:
    """
    Runs collection cycles over the registry's query definitions.

    Usage:
        config_manager = ConfigManager(config_dir=Path("config"))
        registry = QueryRegistry(config_manager)
        registry.load_all()

        async with SQLDataSource(registry.config.database) as source:
            runner = CollectionRunner(registry, source)
            samples = await runner.run_cycle()

        runner.print_stats()
    """

    def __init__(
        self,
        registry: QueryRegistry,
        data_source: DataSource,
        reporter: Reporter | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            registry: Source of query definitions.
            data_source: Shared data source for all queries.
            reporter: Diagnostic reporter (structlog logger by default).
        """
        self._registry = registry
        self._stats = StatsCollector()
        self._executor = QueryExecutor(data_source, reporter=reporter, stats=self._stats)
        self._dispatcher = QueryDispatcher(self._executor)

    @property
    def registry(self) -> QueryRegistry:
        return self._registry

    @property
    def stats(self) -> StatsCollector:
        return self._stats

    async def run_cycle(
        self,
        definitions: Sequence[QueryDefinition] | None = None,
    ) -> Samples:
        """
        Run one collection cycle.

        Args:
            definitions: Definitions to run; the registry's when omitted.

        Returns:
            Every sample derived during the cycle.
        """
        if definitions is None:
            definitions = self._registry.definitions

        self._stats.clear()
        samples = Samples()
        start = time.perf_counter()

        logger.info("collection_cycle_starting", queries=len(definitions))

        await self._dispatcher.dispatch(definitions, samples)

        agg = self._stats.aggregate()
        logger.info(
            "collection_cycle_complete",
            queries=agg.total_queries,
            succeeded=agg.succeeded,
            timed_out=agg.timed_out,
            failed=agg.failed + agg.row_errors,
            samples=len(samples),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

        return samples

    def get_stats(self) -> CycleStats:
        """Aggregated statistics of the last cycle."""
        return self._stats.aggregate()

    def print_stats(self) -> None:
        self._stats.print_summary()
