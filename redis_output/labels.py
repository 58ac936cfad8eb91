"""Series naming and tag-to-label projection."""

from __future__ import annotations

from typing import Dict

from redis_output.base import Metric

AGGREGATE_SUFFIX = "_avg"


def series_key(metric_name: str, field_key: str) -> str:
    return f"{metric_name}.{field_key}"


def aggregate_key(key: str) -> str:
    return key + AGGREGATE_SUFFIX


def project_labels(metric: Metric) -> Dict[str, str]:
    """Return a fresh tag-key -> tag-value mapping; on duplicate keys the last tag wins."""

    labels: Dict[str, str] = {}
    for tag in metric.tag_list():
        labels[tag.key] = tag.value
    return labels
