"""
Custom exceptions for the querymetrics library.

All exceptions inherit from QueryMetricsError for easy catching.
"""

from typing import Any


class QueryMetricsError(Exception):
    """Base exception for all querymetrics errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(QueryMetricsError):
    """Raised when there's a configuration error."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_path = config_path


class TemplateError(QueryMetricsError):
    """Raised when template rendering fails."""

    def __init__(
        self,
        message: str,
        template_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.template_name = template_name


class ConnectorError(QueryMetricsError):
    """Raised when a data source operation fails."""

    def __init__(
        self,
        message: str,
        connector_type: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.connector_type = connector_type
        self.operation = operation


class QueryError(QueryMetricsError):
    """Base class for failures scoped to a single query."""

    def __init__(
        self,
        message: str,
        query: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.query = query


class QueryTimeoutError(QueryError):
    """Raised when a query exceeds its configured deadline."""


class QueryExecutionError(QueryError):
    """Raised when the data source rejects or fails a query."""


class RowReadError(QueryError):
    """Raised when a result row cannot be read from the data source."""


class FieldConversionError(QueryMetricsError):
    """Raised when a metric field value is not a finite number."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value
