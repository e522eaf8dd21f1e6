"""
Query registry for managing query definitions.

Provides:
- Loading the collector config and its query files
- Lookup of definitions by measurement
- Programmatic registration
"""

from pathlib import Path
from typing import Iterator

import structlog

from querymetrics.collector.config import CollectorConfig, QueryDefinition
from querymetrics.core.config import ConfigManager
from querymetrics.core.exceptions import ConfigurationError

logger = structlog.get_logger()


class QueryRegistry:
    """
    Registry of the query definitions run on every collection cycle.

    Usage:
        registry = QueryRegistry(config_manager)
        registry.load_all("collector.yaml")

        for definition in registry:
            print(definition.measurement)
    """

    def __init__(self, config_manager: ConfigManager) -> None:
        self._config_manager = config_manager
        self._config: CollectorConfig | None = None
        self._definitions: list[QueryDefinition] = []

    @property
    def config_manager(self) -> ConfigManager:
        return self._config_manager

    @property
    def config(self) -> CollectorConfig:
        """The loaded collector config (an empty default before loading)."""
        return self._config or CollectorConfig()

    @property
    def definitions(self) -> list[QueryDefinition]:
        """All registered definitions, in load order (copy)."""
        return self._definitions.copy()

    def load_all(self, config_file: Path | str = "collector.yaml") -> int:
        """
        Load the collector config plus every file matched by its ``query_files``.

        A query file that fails to load is logged and skipped; the main
        config file must load.

        Returns:
            Number of definitions loaded.

        Raises:
            ConfigurationError: If the main config can't be loaded.
        """
        config = self._config_manager.load_config(config_file, CollectorConfig)
        self._config = config
        self._definitions = list(config.queries)

        for path in self._config_manager.resolve_files(config.query_files):
            try:
                loaded = self.load_file(path)
            except ConfigurationError as e:
                logger.error(
                    "query_file_load_failed",
                    path=str(path),
                    error=str(e),
                )
                continue
            self._definitions.extend(loaded)

        logger.info(
            "query_registry_loaded",
            total=len(self._definitions),
            measurements=[d.measurement for d in self._definitions],
        )

        return len(self._definitions)

    def load_file(self, path: Path | str) -> list[QueryDefinition]:
        """
        Load definitions from a query file with a top-level ``queries`` list.

        The collector's ``default_timeout`` applies to them as well.

        Raises:
            ConfigurationError: If loading or validation fails.
        """
        data = self._config_manager.load_yaml(path)

        try:
            partial = CollectorConfig.model_validate({
                "default_timeout": self.config.default_timeout,
                "queries": data.get("queries", []),
            })
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load query file: {path}",
                config_path=str(path),
                details={"error": str(e)},
            ) from e

        logger.debug(
            "query_file_loaded",
            path=str(path),
            measurements=[d.measurement for d in partial.queries],
        )
        return partial.queries

    def register(self, definition: QueryDefinition) -> None:
        """Register a definition programmatically."""
        self._definitions.append(definition)

    def get(self, measurement: str) -> list[QueryDefinition]:
        """All definitions feeding a measurement."""
        return [d for d in self._definitions if d.measurement == measurement]

    def clear(self) -> None:
        self._definitions.clear()

    def __iter__(self) -> Iterator[QueryDefinition]:
        return iter(self._definitions.copy())

    def __len__(self) -> int:
        return len(self._definitions)
