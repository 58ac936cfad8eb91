"""Fan metrics out into datapoints and append them under one deadline."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from redis_output.base import Datapoint, Metric, TimeseriesClient
from redis_output.deadline import Deadline
from redis_output.errors import DatastoreError, DeadlineExceeded
from redis_output.labels import series_key
from redis_output.provisioner import SeriesProvisioner
from redis_output.values import coerce_value


@dataclass
class WriteReport:
    written: int = 0
    skipped: int = 0
    failed: int = 0
    deadline_skipped: int = 0


def metric_datapoints(metric: Metric) -> Tuple[List[Datapoint], int]:
    """Return the datapoints for every numeric, finite field plus the count of dropped fields."""

    epoch_seconds = math.floor(metric.time().timestamp())
    points: List[Datapoint] = []
    dropped = 0
    for key, raw in metric.fields().items():
        emit, value = coerce_value(raw)
        if not emit:
            dropped += 1
            continue
        points.append(Datapoint(series_key(metric.name(), key), epoch_seconds, value))
    return points, dropped


class BatchWriter:
    """Append one sample per (metric, numeric field), isolating failures per datapoint."""

    def __init__(
        self,
        client: TimeseriesClient,
        provisioner: Optional[SeriesProvisioner] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.logger = logger or logging.getLogger(__name__)
        self.provisioner = provisioner or SeriesProvisioner(client, logger=self.logger)

    def write(self, metrics: Iterable[Metric], deadline: Deadline) -> WriteReport:
        report = WriteReport()
        pending: List[Tuple[Metric, Datapoint]] = []
        for metric in metrics:
            points, dropped = metric_datapoints(metric)
            report.skipped += dropped
            pending.extend((metric, point) for point in points)

        for index, (metric, point) in enumerate(pending):
            try:
                self.provisioner.ensure(metric, point.series_key, deadline=deadline)
                stored = self.client.add(point.series_key, point.epoch_seconds, point.value, deadline=deadline)
            except DeadlineExceeded as exc:
                report.deadline_skipped = len(pending) - index
                self.logger.error("%s; %s datapoints not written", exc, report.deadline_skipped)
                break
            except DatastoreError as exc:
                report.failed += 1
                self.logger.error("Append to %s failed: %s", point.series_key, exc)
                continue
            report.written += 1
            self.logger.debug("Appended %s at %s", point.series_key, stored)
        return report
