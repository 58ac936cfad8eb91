"""Lazy creation of a raw series, its averaged companion and the rule joining them."""

from __future__ import annotations

import logging
from typing import Optional

from redis_output.base import Metric, TimeseriesClient
from redis_output.client import AVG_AGGREGATION
from redis_output.deadline import Deadline
from redis_output.errors import DatastoreError, ProvisioningError, SeriesExistsError
from redis_output.labels import aggregate_key, project_labels

BUCKET_SECONDS = 60


class SeriesProvisioner:
    """Probe a series key and provision it on first sight.

    No local cache is kept: the info probe is the fast path once a series
    exists. Creation errors never propagate; an "already exists" reply means
    a concurrent writer won the race and is logged at debug level, anything
    else at warning. The append that follows surfaces persistent failures.
    Labels come from the metric that triggered provisioning and are not
    rewritten afterwards.
    """

    def __init__(self, client: TimeseriesClient, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    def ensure(self, metric: Metric, series_key: str, deadline: Optional[Deadline] = None) -> bool:
        """Return True when provisioning was attempted, False when the series already existed."""

        try:
            self.client.info(series_key, deadline=deadline)
            return False
        except DatastoreError as exc:
            self.logger.debug("Series %s not available (%s); provisioning", series_key, exc)

        labels = project_labels(metric)
        avg_key = aggregate_key(series_key)
        steps = (
            ("create", lambda: self.client.create(series_key, labels, deadline=deadline)),
            ("create_aggregate", lambda: self.client.create(avg_key, labels, deadline=deadline)),
            (
                "create_rule",
                lambda: self.client.create_rule(
                    series_key, AVG_AGGREGATION, BUCKET_SECONDS, avg_key, deadline=deadline
                ),
            ),
        )
        for step, call in steps:
            try:
                call()
            except SeriesExistsError as exc:
                self.logger.debug("Provisioning %s: %s already done (%s)", series_key, step, exc)
            except DatastoreError as exc:
                self.logger.warning("%s", ProvisioningError(series_key, step, exc))
        return True
