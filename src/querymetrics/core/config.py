"""
Configuration management with Jinja templating and .env integration.

Provides:
- Loading YAML configs with Jinja variable substitution
- Environment variable injection from .env
- Type-safe configuration models
- Glob resolution of auxiliary config files
"""

import os
from pathlib import Path
from typing import Any, TypeVar

import structlog
import yaml
from dotenv import dotenv_values
from pydantic import BaseModel

from querymetrics.core.exceptions import ConfigurationError, TemplateError
from querymetrics.core.templating import TemplateEngine

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


class ConfigManager:
    """
    Configuration manager with Jinja templating and environment variable support.

    Usage:
        manager = ConfigManager(
            config_dir=Path("config"),
            env_file=Path(".env"),
        )

        collector_config = manager.load_config("collector.yaml", CollectorConfig)
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        env_file: Path | None = None,
        load_system_env: bool = True,
    ) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Directory containing configuration files.
            env_file: Path to .env file.
            load_system_env: Whether to load system environment variables.
        """
        self._config_dir = config_dir or Path("config")
        self._env_file = env_file

        self._env_vars: dict[str, str] = {}
        self._load_environment_variables(load_system_env)

        self._template_engine = TemplateEngine(context=self._env_vars)

    def _load_environment_variables(self, load_system_env: bool) -> None:
        """Load environment variables from .env and system."""
        if self._env_file and self._env_file.exists():
            self._env_vars.update(
                {k: v for k, v in dotenv_values(self._env_file).items() if v is not None}
            )

        # System environment wins over .env
        if load_system_env:
            self._env_vars.update(os.environ)

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory."""
        return self._config_dir

    @property
    def env_vars(self) -> dict[str, str]:
        """Get loaded environment variables (copy)."""
        return self._env_vars.copy()

    @property
    def template_engine(self) -> TemplateEngine:
        return self._template_engine

    def load_yaml(
        self,
        file_path: Path | str,
        render_template: bool = True,
        extra_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Load a YAML file with optional Jinja rendering.

        Args:
            file_path: Path to the YAML file (relative to config_dir or absolute).
            render_template: Whether to render Jinja variables.
            extra_context: Additional context for rendering.

        Returns:
            Parsed YAML content as dictionary.

        Raises:
            ConfigurationError: If file not found or parsing fails.
        """
        path = self._resolve_path(file_path)

        try:
            content = path.read_text(encoding="utf-8")

            if render_template:
                content = self._template_engine.render_string(content, extra_context)

            data = yaml.safe_load(content)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                config_path=str(path),
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML: {e}",
                config_path=str(path),
            ) from e
        except TemplateError as e:
            raise ConfigurationError(
                f"Failed to render configuration: {e.message}",
                config_path=str(path),
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_path=str(path),
                details={"type": type(data).__name__},
            )
        return data

    def load_config(
        self,
        file_path: Path | str,
        model: type[T],
        extra_context: dict[str, Any] | None = None,
    ) -> T:
        """
        Load a YAML config file and parse into a Pydantic model.

        Raises:
            ConfigurationError: If file not found, parsing, or validation fails.
        """
        data = self.load_yaml(file_path, render_template=True, extra_context=extra_context)

        try:
            return model.model_validate(data)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to validate configuration: {e}",
                config_path=str(file_path),
                details={"model": model.__name__},
            ) from e

    def resolve_files(self, patterns: list[str]) -> list[Path]:
        """
        Resolve glob patterns relative to the config directory.

        Returns:
            Matching files, sorted and without duplicates.
        """
        matched: dict[Path, None] = {}
        for pattern in patterns:
            files = sorted(p for p in self._config_dir.glob(pattern) if p.is_file())
            logger.debug("config_pattern_resolved", pattern=pattern, files=[str(f) for f in files])
            if not files:
                logger.warning("config_pattern_unmatched", pattern=pattern)
            for f in files:
                matched[f] = None
        return list(matched)

    def _resolve_path(self, file_path: Path | str) -> Path:
        path = Path(file_path)

        if path.is_absolute():
            return path

        config_path = self._config_dir / path
        if config_path.exists():
            return config_path

        return path
