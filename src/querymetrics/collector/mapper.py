"""
Row materialization and row-to-sample mapping.
"""

import math
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import structlog

from querymetrics.collector.config import QueryDefinition
from querymetrics.core.base import Reporter
from querymetrics.core.exceptions import FieldConversionError
from querymetrics.core.samples import SampleSink
from querymetrics.core.sanitize import clean_name, sanitize_label_value


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class Row(Mapping[str, str]):
    """
    One fetched row: lowercase column name -> raw text value.

    Column names are normalized when the row is built; lookups accept any
    casing.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = {
            key.lower(): value for key, value in (values or {}).items()
        }

    @classmethod
    def from_columns(cls, columns: Sequence[str], values: Sequence[Any]) -> "Row":
        """
        Materialize a row from a result's column names and raw values.

        Raises:
            ValueError: If the number of values doesn't match the columns.
        """
        if len(columns) != len(values):
            raise ValueError(
                f"row has {len(values)} values for {len(columns)} columns"
            )
        return cls({str(col): _to_text(val) for col, val in zip(columns, values)})

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"


def to_float(field: str, raw: str) -> float:
    """
    Convert a raw column value to a finite float.

    Raises:
        FieldConversionError: If the value is not numeric or not finite.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise FieldConversionError(
            f"Cannot convert field {field!r} to a number",
            field=field,
            value=raw,
        ) from e
    if not math.isfinite(value):
        raise FieldConversionError(
            f"Field {field!r} is not a finite number",
            field=field,
            value=raw,
        )
    return value


class RowMapper:
    """
    Turns rows into samples according to a query definition.

    Labels are built once per row and shared by every sample of that row.
    A metric field that fails to convert is reported and skipped without
    affecting its siblings.
    """

    def __init__(self, reporter: Reporter | None = None) -> None:
        self._reporter: Reporter = reporter or structlog.get_logger()

    def build_labels(self, row: Row, definition: QueryDefinition) -> dict[str, str]:
        return {
            label: sanitize_label_value(row[label])
            for label in definition.label_fields
            if label in row
        }

    def metric_name(self, row: Row, definition: QueryDefinition) -> str:
        if not definition.field_to_append:
            return definition.measurement
        suffix = clean_name(row.get(definition.field_to_append, ""))
        return f"{definition.measurement}_{suffix}"

    def map_row(self, row: Row, definition: QueryDefinition, sink: SampleSink) -> int:
        """
        Emit one sample per convertible metric field of a row.

        Returns:
            Number of samples emitted.
        """
        labels = self.build_labels(row, definition)
        name = self.metric_name(row, definition)
        emitted = 0

        # Repeated fields collapse to one sample each
        for field in dict.fromkeys(definition.metric_fields):
            raw = row.get(field, "")
            try:
                value = to_float(field, raw)
            except FieldConversionError as e:
                self._reporter.error(
                    "field_conversion_failed",
                    measurement=definition.measurement,
                    field=field,
                    value=raw,
                    error=e.message,
                )
                continue

            sink.add_metric(name, {field: value}, labels)
            emitted += 1

        return emitted
