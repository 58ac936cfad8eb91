"""Core types shared by the output: metrics, datapoints and collaborator protocols."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol

from redis_output.deadline import Deadline


@dataclass(frozen=True)
class Tag:
    """One (key, value) tag pair of a metric."""

    key: str
    value: str


@dataclass
class Datapoint:
    """A single sample appended to one series."""

    series_key: str
    epoch_seconds: int
    value: float


class Metric(Protocol):
    """Read-only view of a host metric."""

    def name(self) -> str:
        ...

    def time(self) -> datetime:
        ...

    def fields(self) -> Mapping[str, Any]:
        ...

    def tag_list(self) -> List[Tag]:
        ...


@dataclass
class SimpleMetric:
    """Plain in-memory metric satisfying the Metric protocol."""

    metric_name: str
    ts: datetime
    metric_fields: Dict[str, Any] = field(default_factory=dict)
    tags: List[Tag] = field(default_factory=list)

    def name(self) -> str:
        return self.metric_name

    def time(self) -> datetime:
        return self.ts

    def fields(self) -> Dict[str, Any]:
        return self.metric_fields

    def tag_list(self) -> List[Tag]:
        return self.tags


class Serializer(Protocol):
    """Host serializer; accepted by the output but not used on the write path."""

    def serialize(self, metric: Metric) -> bytes:
        ...


class TimeseriesClient(Protocol):
    """Datastore operations the output depends on. Timestamps and buckets are in seconds."""

    def ping(self, deadline: Optional[Deadline] = None) -> None:
        ...

    def info(self, key: str, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        ...

    def create(self, key: str, labels: Mapping[str, str], deadline: Optional[Deadline] = None) -> None:
        ...

    def create_rule(
        self,
        source_key: str,
        aggregation: str,
        bucket_seconds: int,
        dest_key: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        ...

    def add(self, key: str, epoch_seconds: int, value: float, deadline: Optional[Deadline] = None) -> int:
        ...

    def close(self) -> None:
        ...


class Output(Protocol):
    """Lifecycle contract a host expects from an output plugin."""

    def connect(self) -> None:
        ...

    def write(self, metrics: List[Metric]) -> None:
        ...

    def close(self) -> None:
        ...

    def description(self) -> str:
        ...

    def sample_config(self) -> str:
        ...
