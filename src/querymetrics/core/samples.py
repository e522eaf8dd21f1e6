"""
Metric samples and the sink that accumulates them.
"""

import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

import orjson


@dataclass(frozen=True)
class MetricSample:
    """A single named, labeled measurement."""

    name: str
    fields: Mapping[str, float]
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze copies so later changes to the caller's dicts don't leak in
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def field_name(self) -> str:
        """Name of the (first) value field."""
        return next(iter(self.fields))

    @property
    def value(self) -> float:
        """Value of the (first) value field."""
        return next(iter(self.fields.values()))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "fields": dict(self.fields),
            "labels": dict(self.labels),
        }


@runtime_checkable
class SampleSink(Protocol):
    """Receives samples emitted by the row mapper."""

    def add_metric(
        self,
        name: str,
        fields: Mapping[str, float],
        labels: Mapping[str, str],
    ) -> None:
        """Append one sample."""
        ...


class Samples:
    """
    Append-only, thread-safe sample collection.

    Implements SampleSink; concurrent appends from any number of
    tasks or threads are never lost.

    Usage:
        samples = Samples()
        samples.add_metric("mysql_custom", {"value": 1.0}, {"host": "db1"})
        for sample in samples:
            print(sample.name, sample.value)
    """

    def __init__(self, samples: Iterable[MetricSample] | None = None) -> None:
        self._samples: list[MetricSample] = list(samples or [])
        self._lock = threading.Lock()

    def add_metric(
        self,
        name: str,
        fields: Mapping[str, float],
        labels: Mapping[str, str],
    ) -> None:
        self.add(MetricSample(name=name, fields=fields, labels=labels))

    def add(self, sample: MetricSample) -> None:
        with self._lock:
            self._samples.append(sample)

    def extend(self, samples: Iterable[MetricSample]) -> None:
        """Append several samples in one locked step, preserving order."""
        batch = list(samples)
        with self._lock:
            self._samples.extend(batch)

    @property
    def samples(self) -> list[MetricSample]:
        """Snapshot of collected samples (copy)."""
        with self._lock:
            return self._samples.copy()

    def names(self) -> set[str]:
        """Distinct metric names collected so far."""
        return {sample.name for sample in self.samples}

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def to_json(self) -> bytes:
        """Serialize all samples as a JSON array."""
        return orjson.dumps([sample.to_dict() for sample in self.samples])

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __iter__(self) -> Iterator[MetricSample]:
        return iter(self.samples)
