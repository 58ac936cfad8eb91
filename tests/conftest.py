import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from redis_output.base import SimpleMetric, Tag
from redis_output.errors import SeriesExistsError, SeriesNotFoundError


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimeseriesClient:
    """In-memory stand-in for RedisTimeseriesClient that records every call."""

    def __init__(self, clock: Optional[FakeClock] = None, call_cost_s: float = 0.0) -> None:
        self.clock = clock
        self.call_cost_s = call_cost_s
        self.series: Dict[str, Dict[str, str]] = {}
        self.rules: List[Tuple[str, str, int, str]] = []
        self.samples: List[Tuple[str, int, float]] = []
        self.calls: List[Tuple[Any, ...]] = []
        self.add_errors: Dict[str, Exception] = {}
        self.create_errors: Dict[str, Exception] = {}
        self.close_error: Optional[Exception] = None
        self.ping_error: Optional[Exception] = None
        self.closed = False

    def _enter(self, deadline, *call) -> None:
        if deadline is not None:
            deadline.check()
        self.calls.append(call)
        if self.clock is not None:
            self.clock.advance(self.call_cost_s)

    def ops(self) -> List[str]:
        return [call[0] for call in self.calls]

    def ping(self, deadline=None) -> None:
        self._enter(deadline, "ping")
        if self.ping_error is not None:
            raise self.ping_error

    def info(self, key, deadline=None):
        self._enter(deadline, "info", key)
        if key not in self.series:
            raise SeriesNotFoundError(f"TSDB: the key does not exist: {key}")
        return {"key": key, "labels": dict(self.series[key])}

    def create(self, key, labels, deadline=None) -> None:
        self._enter(deadline, "create", key, dict(labels))
        if key in self.create_errors:
            raise self.create_errors[key]
        if key in self.series:
            raise SeriesExistsError("TSDB: key already exists")
        self.series[key] = dict(labels)

    def create_rule(self, source_key, aggregation, bucket_seconds, dest_key, deadline=None) -> None:
        self._enter(deadline, "create_rule", source_key, aggregation, bucket_seconds, dest_key)
        self.rules.append((source_key, aggregation, bucket_seconds, dest_key))

    def add(self, key, epoch_seconds, value, deadline=None) -> int:
        self._enter(deadline, "add", key, epoch_seconds, value)
        if key in self.add_errors:
            raise self.add_errors.pop(key)
        self.samples.append((key, epoch_seconds, value))
        return epoch_seconds

    def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


def make_metric(name="cpu", fields=None, tags=None, ts=1700000000) -> SimpleMetric:
    return SimpleMetric(
        metric_name=name,
        ts=datetime.fromtimestamp(ts, tz=timezone.utc),
        metric_fields=dict(fields or {}),
        tags=[Tag(k, v) for k, v in (tags or [])],
    )


@pytest.fixture
def fake_client() -> FakeTimeseriesClient:
    return FakeTimeseriesClient()


@pytest.fixture
def test_logger() -> logging.Logger:
    logger = logging.getLogger("redis_output.tests")
    logger.setLevel(logging.DEBUG)
    return logger


def error_records(caplog, logger_name: str = "redis_output.tests"):
    return [r for r in caplog.records if r.name == logger_name and r.levelno == logging.ERROR]
