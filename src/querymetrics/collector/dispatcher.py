"""
Concurrent fan-out of query definitions.
"""

import asyncio
from collections.abc import Sequence

from querymetrics.collector.config import QueryDefinition
from querymetrics.collector.executor import QueryExecutor
from querymetrics.core.samples import SampleSink


class QueryDispatcher:
    """
    Runs every definition of a cycle concurrently and waits for all of them.

    One task per definition, no ordering between them. Each task owns its
    own deadline; a timeout or failure in one never cancels the others,
    since executors report their failures instead of raising.

    Usage:
        dispatcher = QueryDispatcher(QueryExecutor(source))
        await dispatcher.dispatch(definitions, samples)
    """

    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    @property
    def executor(self) -> QueryExecutor:
        return self._executor

    async def dispatch(
        self,
        definitions: Sequence[QueryDefinition],
        sink: SampleSink,
    ) -> None:
        """Execute all definitions and return once every one has finished."""
        if not definitions:
            return

        async with asyncio.TaskGroup() as group:
            for index, definition in enumerate(definitions):
                group.create_task(
                    self._executor.execute(definition, sink),
                    name=f"query-{index}-{definition.measurement}",
                )
