"""
Collector configuration models.

Provides type-safe configuration for:
- Individual query definitions
- The collector as a whole (defaults, database, query files)
"""

from datetime import timedelta
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from querymetrics.connectors.sql.config import DatabaseConfig

DEFAULT_TIMEOUT = timedelta(seconds=5)

_DURATION_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def parse_duration(value: str) -> timedelta:
    """
    Convert a duration string like '500ms', '10s', '5m' or '2h' into a timedelta.

    A bare number is taken as seconds.
    """
    s = value.strip().lower()
    # "ms" must be tried before "s" and "m"
    for unit, factor in _DURATION_UNITS.items():
        if s.endswith(unit):
            try:
                return timedelta(seconds=float(s[: -len(unit)]) * factor)
            except ValueError:
                raise ValueError(f"Invalid numeric value in duration: {value}") from None
    try:
        return timedelta(seconds=float(s))
    except ValueError:
        raise ValueError(f"Unrecognized duration format: {value}") from None


def _coerce_duration(value: Any) -> Any:
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=value)
    return value


class QueryDefinition(BaseModel):
    """
    One custom query and how its rows turn into samples.

    Example (YAML):
        measurement: mysql_table_size
        metric_fields: [data_length, index_length]
        label_fields: [table_schema, table_name]
        timeout: 3s
        query: SELECT table_schema, table_name, data_length, index_length
               FROM information_schema.tables
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    measurement: str = Field(
        validation_alias=AliasChoices("measurement", "mesurement"),
        description="Base metric name",
    )
    metric_fields: tuple[str, ...] = Field(
        default=(),
        description="Columns converted to numeric sample values",
    )
    label_fields: tuple[str, ...] = Field(
        default=(),
        description="Columns attached as labels",
    )
    field_to_append: str | None = Field(
        default=None,
        description="Column whose sanitized value suffixes the measurement name",
    )
    timeout: timedelta = Field(
        default=DEFAULT_TIMEOUT,
        description="Deadline for executing the query and reading its rows",
    )
    query: str = Field(
        validation_alias=AliasChoices("query", "request"),
        description="SQL text, passed to the data source as-is",
    )

    @field_validator("measurement", "query")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("timeout", mode="before")
    @classmethod
    def validate_timeout_format(cls, v: Any) -> Any:
        return _coerce_duration(v)

    @field_validator("timeout")
    @classmethod
    def validate_timeout_positive(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("timeout must be positive")
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout.total_seconds()


class CollectorConfig(BaseModel):
    """
    Complete collector configuration.

    ``default_timeout`` applies to every query that doesn't set its own.
    ``query_files`` are glob patterns, relative to the config directory,
    of additional YAML files with a top-level ``queries`` list.
    """

    database: DatabaseConfig | None = Field(
        default=None,
        description="Data source connection settings",
    )
    default_timeout: timedelta = Field(
        default=DEFAULT_TIMEOUT,
        description="Timeout for queries that don't define one",
    )
    queries: list[QueryDefinition] = Field(
        default_factory=list,
        description="Inline query definitions",
    )
    query_files: list[str] = Field(
        default_factory=list,
        description="Glob patterns of extra query files",
    )

    @model_validator(mode="before")
    @classmethod
    def apply_default_timeout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        default = data.get("default_timeout")
        if default is None or not isinstance(data.get("queries"), list):
            return data
        data = dict(data)
        data["queries"] = [
            {**q, "timeout": default} if isinstance(q, dict) and "timeout" not in q else q
            for q in data["queries"]
        ]
        return data

    @field_validator("default_timeout", mode="before")
    @classmethod
    def validate_default_timeout(cls, v: Any) -> Any:
        return _coerce_duration(v)
