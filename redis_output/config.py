"""Configuration loading utilities for the Redis output."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from redis_output.errors import ConfigurationError

PASSWORD_NOT_FORWARDED = "password is configured but is not forwarded to the datastore client"


@dataclass
class RedisOutputConfig:
    """Options recognized by the Redis output."""

    prefix: str = ""
    password: str = ""
    host: str = "localhost:6379"
    write_timeout_ms: int = 1000
    socket_timeout_s: float = 1.0
    ping_on_connect: bool = False


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _section(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    outputs = raw.get("outputs")
    if isinstance(outputs, dict) and isinstance(outputs.get("redis"), dict):
        return outputs["redis"]
    if isinstance(raw.get("redis"), dict):
        return raw["redis"]
    return raw


def config_from_mapping(raw: Mapping[str, Any]) -> RedisOutputConfig:
    """Build a config from an already-parsed mapping, applying defaults."""

    base = RedisOutputConfig()
    prefix = raw.get("prefix", base.prefix)
    password = raw.get("password", base.password)
    try:
        write_timeout_ms = int(raw.get("write_timeout_ms", base.write_timeout_ms))
        socket_timeout_s = float(raw.get("socket_timeout_s", base.socket_timeout_s))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout value: {exc}") from exc
    return RedisOutputConfig(
        prefix=prefix if prefix is not None else "",
        password=password if password is not None else "",
        host=str(raw.get("host") or base.host).strip(),
        write_timeout_ms=write_timeout_ms,
        socket_timeout_s=socket_timeout_s,
        ping_on_connect=bool(raw.get("ping_on_connect", base.ping_on_connect)),
    )


def load_redis_output_config(path: Path) -> RedisOutputConfig:
    """Load the output section from YAML (``outputs.redis``, ``redis`` or the whole document)."""

    return config_from_mapping(_section(_load_yaml(path)))


def validate_config(cfg: RedisOutputConfig) -> List[str]:
    """Raise ConfigurationError for unusable settings and return non-fatal warnings."""

    if not isinstance(cfg.prefix, str):
        raise ConfigurationError("prefix must be a string")
    if not isinstance(cfg.password, str):
        raise ConfigurationError("password must be a string")
    if not cfg.host:
        raise ConfigurationError("host must be set as host:port")
    name, sep, port = cfg.host.rpartition(":")
    if sep:
        if not name.strip("[]"):
            raise ConfigurationError(f"host is missing a hostname: {cfg.host!r}")
        if ":" in name and not (name.startswith("[") and name.endswith("]")):
            raise ConfigurationError(f"IPv6 host must be written as [addr]:port: {cfg.host!r}")
        try:
            port_num = int(port)
        except ValueError as exc:
            raise ConfigurationError(f"host port is not an integer: {cfg.host!r}") from exc
        if port_num < 1 or port_num > 65535:
            raise ConfigurationError("host port must be between 1 and 65535")
    if cfg.write_timeout_ms <= 0:
        raise ConfigurationError("write_timeout_ms must be positive")
    if cfg.socket_timeout_s <= 0:
        raise ConfigurationError("socket_timeout_s must be positive")

    warnings: List[str] = []
    if cfg.password:
        warnings.append(PASSWORD_NOT_FORWARDED)
    return warnings
