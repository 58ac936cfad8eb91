"""RedisTimeSeries client built on redis-py."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from redis_output.deadline import Deadline
from redis_output.errors import (
    DatastoreConnectionError,
    DatastoreError,
    SeriesExistsError,
    SeriesNotFoundError,
)

AVG_AGGREGATION = "avg"
DEFAULT_PORT = 6379


def split_host(host: str) -> tuple[str, int]:
    """Split ``host:port``; a bare host gets the default Redis port.

    IPv6 addresses must be bracketed: ``[::1]:6379``.
    """

    name, sep, port = host.rpartition(":")
    if not sep:
        return host, DEFAULT_PORT
    if ":" in name and not (name.startswith("[") and name.endswith("]")):
        raise ValueError(f"IPv6 host must be written as [addr]:port: {host!r}")
    return name.strip("[]"), int(port)


def _translate(exc: redis.exceptions.RedisError) -> DatastoreError:
    if isinstance(exc, (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)):
        return DatastoreConnectionError(str(exc))
    message = str(exc).lower()
    if "does not exist" in message:
        return SeriesNotFoundError(str(exc))
    if "already" in message:
        return SeriesExistsError(str(exc))
    return DatastoreError(str(exc))


class RedisTimeseriesClient:
    """Thin wrapper over ``redis.Redis().ts()``.

    Every key is prefixed with ``prefix`` before it reaches the server. The
    public interface works in epoch seconds; RedisTimeSeries itself stores
    milliseconds, so timestamps and bucket widths are converted on the wire.
    Each call checks the caller's deadline before issuing I/O and the socket
    timeout bounds the call that is already in flight.
    """

    def __init__(
        self,
        host: str,
        prefix: str = "",
        socket_timeout_s: float = 1.0,
        connection: Optional[redis.Redis] = None,
    ) -> None:
        self.prefix = prefix
        if connection is None:
            address, port = split_host(host)
            connection = redis.Redis(
                host=address,
                port=port,
                socket_timeout=socket_timeout_s,
                socket_connect_timeout=socket_timeout_s,
                # No retries: one call is bounded by the socket timeout.
                retry=Retry(NoBackoff(), 0),
                decode_responses=True,
            )
        self._redis = connection

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def ping(self, deadline: Optional[Deadline] = None) -> None:
        if deadline is not None:
            deadline.check()
        try:
            self._redis.ping()
        except redis.exceptions.RedisError as exc:
            raise _translate(exc) from exc

    def info(self, key: str, deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        if deadline is not None:
            deadline.check()
        try:
            info = self._redis.ts().info(self._key(key))
        except redis.exceptions.RedisError as exc:
            raise _translate(exc) from exc
        return {
            "key": key,
            "labels": dict(getattr(info, "labels", None) or {}),
            "rules": list(getattr(info, "rules", None) or []),
            "total_samples": getattr(info, "total_samples", None),
        }

    def create(self, key: str, labels: Mapping[str, str], deadline: Optional[Deadline] = None) -> None:
        if deadline is not None:
            deadline.check()
        try:
            self._redis.ts().create(self._key(key), labels=dict(labels))
        except redis.exceptions.RedisError as exc:
            raise _translate(exc) from exc

    def create_rule(
        self,
        source_key: str,
        aggregation: str,
        bucket_seconds: int,
        dest_key: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        if deadline is not None:
            deadline.check()
        try:
            self._redis.ts().createrule(
                self._key(source_key),
                self._key(dest_key),
                aggregation,
                int(bucket_seconds) * 1000,
            )
        except redis.exceptions.RedisError as exc:
            raise _translate(exc) from exc

    def add(self, key: str, epoch_seconds: int, value: float, deadline: Optional[Deadline] = None) -> int:
        """Append one sample and return the stored timestamp in epoch seconds."""

        if deadline is not None:
            deadline.check()
        try:
            stored = self._redis.ts().add(self._key(key), int(epoch_seconds) * 1000, value)
        except redis.exceptions.RedisError as exc:
            raise _translate(exc) from exc
        return int(stored) // 1000

    def close(self) -> None:
        # Pool release errors reach the caller untranslated.
        self._redis.connection_pool.disconnect()
