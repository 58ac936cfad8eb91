"""Exception hierarchy for the Redis TimeSeries output."""

from __future__ import annotations

from typing import Optional


class RedisOutputError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(RedisOutputError):
    """Missing or malformed output configuration."""


class DatastoreError(RedisOutputError):
    """A datastore round-trip failed."""


class DatastoreConnectionError(DatastoreError):
    """The datastore could not be reached."""


class SeriesNotFoundError(DatastoreError):
    """The requested series key does not exist."""


class SeriesExistsError(DatastoreError):
    """The series key (or rule) already exists."""


class ProvisioningError(DatastoreError):
    """Creating a series or its aggregation rule failed."""

    def __init__(self, series_key: str, step: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"provisioning {series_key} failed at {step}: {cause}")
        self.series_key = series_key
        self.step = step
        self.cause = cause


class DeadlineExceeded(RedisOutputError):
    """The batch deadline fired before the next datastore call."""

    def __init__(self, overrun_ms: float) -> None:
        super().__init__(f"write deadline exceeded by {overrun_ms:.1f}ms")
        self.overrun_ms = overrun_ms
