"""Redis TimeSeries output plugin."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from redis_output.base import Metric, Serializer, TimeseriesClient
from redis_output.client import RedisTimeseriesClient
from redis_output.config import RedisOutputConfig, config_from_mapping, validate_config
from redis_output.deadline import Deadline
from redis_output.errors import RedisOutputError
from redis_output.registry import OutputRegistry
from redis_output.writer import BatchWriter

OUTPUT_NAME = "redis"

SAMPLE_CONFIG = """
## Redis key prefix, applied by the client to every series key
prefix: ""
## Redis password (not forwarded to the client; a warning is logged when set)
password: ""
## Redis host as host:port
host: "localhost:6379"
## Deadline for one write batch, in milliseconds
# write_timeout_ms: 1000
## Socket timeout bounding a single datastore call, in seconds
# socket_timeout_s: 1.0
## Fail on connect when the datastore cannot be reached
# ping_on_connect: false
"""


def _default_client(cfg: RedisOutputConfig) -> TimeseriesClient:
    return RedisTimeseriesClient(cfg.host, prefix=cfg.prefix, socket_timeout_s=cfg.socket_timeout_s)


class RedisOutput:
    """Writes every numeric metric field to a RedisTimeSeries key ``<metric>.<field>``.

    Each key gets an ``_avg`` companion fed by a 60s AVG rule, created on the
    first write that references it.
    """

    def __init__(
        self,
        prefix: str = "",
        password: str = "",
        host: str = "",
        write_timeout_ms: int = 1000,
        socket_timeout_s: float = 1.0,
        ping_on_connect: bool = False,
        logger: Optional[logging.Logger] = None,
        client_factory: Optional[Callable[[RedisOutputConfig], TimeseriesClient]] = None,
    ) -> None:
        self.prefix = prefix
        self.password = password
        self.host = host
        self.write_timeout_ms = write_timeout_ms
        self.socket_timeout_s = socket_timeout_s
        self.ping_on_connect = ping_on_connect
        self.log = logger or logging.getLogger(__name__)
        self.client: Optional[TimeseriesClient] = None
        self.serializer: Optional[Serializer] = None
        self._client_factory = client_factory or _default_client
        self._writer: Optional[BatchWriter] = None

    @classmethod
    def from_config(cls, cfg: RedisOutputConfig, **kwargs: Any) -> "RedisOutput":
        output = cls(**kwargs)
        output.apply_config(cfg)
        return output

    def apply_config(self, cfg: RedisOutputConfig) -> None:
        self.prefix = cfg.prefix
        self.password = cfg.password
        self.host = cfg.host
        self.write_timeout_ms = cfg.write_timeout_ms
        self.socket_timeout_s = cfg.socket_timeout_s
        self.ping_on_connect = cfg.ping_on_connect

    def configure(self, raw: Mapping[str, Any]) -> None:
        self.apply_config(config_from_mapping(raw))

    def config(self) -> RedisOutputConfig:
        return RedisOutputConfig(
            prefix=self.prefix,
            password=self.password,
            host=self.host,
            write_timeout_ms=self.write_timeout_ms,
            socket_timeout_s=self.socket_timeout_s,
            ping_on_connect=self.ping_on_connect,
        )

    def set_serializer(self, serializer: Serializer) -> None:
        self.serializer = serializer

    def description(self) -> str:
        return "Redis Output plugin"

    def sample_config(self) -> str:
        return SAMPLE_CONFIG

    def connect(self) -> None:
        cfg = self.config()
        if self.client is not None:
            self.close()
        for warning in validate_config(cfg):
            self.log.warning("Redis output config: %s", warning)
        client = self._client_factory(cfg)
        if cfg.ping_on_connect:
            try:
                client.ping(deadline=Deadline.after_ms(cfg.write_timeout_ms))
            except RedisOutputError:
                client.close()
                raise
        self.client = client
        self._writer = BatchWriter(client, logger=self.log)

    def write(self, metrics: List[Metric]) -> None:
        if self._writer is None:
            raise RedisOutputError("Redis output is not connected")
        deadline = Deadline.after_ms(self.write_timeout_ms)
        report = self._writer.write(metrics, deadline)
        self.log.debug(
            "Redis write: %s written, %s failed, %s skipped, %s past deadline",
            report.written,
            report.failed,
            report.skipped,
            report.deadline_skipped,
        )

    def close(self) -> None:
        client, self.client, self._writer = self.client, None, None
        if client is not None:
            client.close()


def register(registry: OutputRegistry) -> None:
    """Add the ``redis`` output to the host's registry."""

    registry.add(OUTPUT_NAME, RedisOutput)
