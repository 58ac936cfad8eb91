import logging
import math
from datetime import datetime, timezone

from conftest import FakeClock, FakeTimeseriesClient, error_records, make_metric

from redis_output.base import SimpleMetric
from redis_output.deadline import Deadline
from redis_output.errors import DatastoreConnectionError
from redis_output.writer import BatchWriter, metric_datapoints


def _deadline(ms: float = 1000) -> Deadline:
    return Deadline.after_ms(ms)


def test_new_series_is_provisioned_then_appended(fake_client, test_logger):
    writer = BatchWriter(fake_client, logger=test_logger)
    metric = make_metric(tags=[("host", "a")], fields={"usage": 0.5})

    report = writer.write([metric], _deadline())

    assert fake_client.calls == [
        ("info", "cpu.usage"),
        ("create", "cpu.usage", {"host": "a"}),
        ("create", "cpu.usage_avg", {"host": "a"}),
        ("create_rule", "cpu.usage", "avg", 60, "cpu.usage_avg"),
        ("add", "cpu.usage", 1700000000, 0.5),
    ]
    assert report.written == 1


def test_warm_series_only_appends(fake_client, test_logger):
    writer = BatchWriter(fake_client, logger=test_logger)
    metric = make_metric(tags=[("host", "a")], fields={"usage": 0.5})
    writer.write([metric], _deadline())
    fake_client.calls.clear()

    writer.write([metric], _deadline())

    assert fake_client.calls == [("info", "cpu.usage"), ("add", "cpu.usage", 1700000000, 0.5)]
    assert "create" not in fake_client.ops()
    assert "create_rule" not in fake_client.ops()


def test_only_numeric_finite_fields_are_written(fake_client, test_logger):
    writer = BatchWriter(fake_client, logger=test_logger)
    metric = make_metric(fields={"ok": 1.0, "bad": math.nan, "label": "x", "n": 7, "flag": True, "none": None})

    report = writer.write([metric], _deadline())

    assert sorted(fake_client.samples) == [("cpu.n", 1700000000, 7.0), ("cpu.ok", 1700000000, 1.0)]
    touched = {call[1] for call in fake_client.calls}
    assert touched == {"cpu.ok", "cpu.ok_avg", "cpu.n", "cpu.n_avg"}
    assert report.written == 2
    assert report.skipped == 4


def test_failed_append_is_isolated(fake_client, test_logger, caplog):
    caplog.set_level(logging.DEBUG)
    fake_client.series.update({"cpu.a": {}, "cpu.b": {}, "mem.c": {}})
    fake_client.add_errors["cpu.a"] = DatastoreConnectionError("Connection Failed")
    writer = BatchWriter(fake_client, logger=test_logger)
    metrics = [make_metric(fields={"a": 1.0, "b": 2.0}), make_metric(name="mem", fields={"c": 3})]

    report = writer.write(metrics, _deadline())

    assert [call[1] for call in fake_client.calls if call[0] == "add"] == ["cpu.a", "cpu.b", "mem.c"]
    assert sorted(key for key, _, _ in fake_client.samples) == ["cpu.b", "mem.c"]
    assert report.failed == 1
    assert report.written == 2
    errors = error_records(caplog)
    assert len(errors) == 1
    assert "cpu.a" in errors[0].getMessage()


def test_deadline_stops_batch_with_partial_delivery(test_logger, caplog):
    caplog.set_level(logging.DEBUG)
    clock = FakeClock()
    client = FakeTimeseriesClient(clock=clock, call_cost_s=0.002)
    metrics = [make_metric(name=f"m{i}", fields={"v": float(i)}) for i in range(1000)]
    for i in range(1000):
        client.series[f"m{i}.v"] = {}
    deadline = Deadline.after_ms(1000, clock=clock)

    report = BatchWriter(client, logger=test_logger).write(metrics, deadline)

    assert 0 < report.written < 1000
    assert 249 <= report.written <= 251
    assert report.written + report.deadline_skipped == 1000
    # No call is issued once the deadline has passed; at most one straddles it.
    assert clock.now <= deadline.expires_at + 0.002 + 1e-9
    assert len(error_records(caplog)) == 1


def test_timestamp_is_floored_epoch_seconds():
    metric = SimpleMetric(
        metric_name="cpu",
        ts=datetime(2023, 11, 14, 22, 13, 20, 900000, tzinfo=timezone.utc),
        metric_fields={"usage": 1},
    )
    points, dropped = metric_datapoints(metric)
    assert dropped == 0
    assert points[0].epoch_seconds == 1700000000
    assert points[0].series_key == "cpu.usage"
    assert points[0].value == 1.0


def test_empty_batch_makes_no_calls(fake_client, test_logger):
    report = BatchWriter(fake_client, logger=test_logger).write([], _deadline())
    assert fake_client.calls == []
    assert report.written == 0
