"""Configuration loading from the YAML config file and environment variables.

File layout::

    common:
      includePaths: [...]
      excludePaths: [...]
      namespaces: [...]
    resources:
      - group: apps
        version: v1
        resource: deployments
        includePaths: [...]
        excludePaths: [...]
        namespaces: [...]

Tunables come from ``KUBETRAIL_*`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from kubetrail.models.config import (
    FilterConfig,
    KubeTrailConfig,
    LogConfig,
    ResourceConfig,
    WatchConfig,
)


class ConfigError(Exception):
    """Raised when the configuration file or environment is unusable."""


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBETRAIL_{key}", default)


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    raw = _env(key, str(default))
    try:
        val = float(raw)
    except ValueError as exc:
        raise ConfigError(f"KUBETRAIL_{key} must be a number, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def _string_list(section: dict[str, Any], key: str, where: str) -> list[str]:
    value = section.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{where}.{key} must be a list")
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"{where}.{key} entries must be strings, got {item!r}")
    return list(value)


def _parse_filters(section: dict[str, Any], where: str) -> FilterConfig:
    return FilterConfig(
        include_paths=_string_list(section, "includePaths", where),
        exclude_paths=_string_list(section, "excludePaths", where),
        namespaces=_string_list(section, "namespaces", where),
    )


def _parse_resource(entry: Any, index: int) -> ResourceConfig:
    where = f"resources[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"{where} must be a mapping")
    group = entry.get("group") or ""
    version = entry.get("version")
    resource = entry.get("resource")
    if not isinstance(group, str):
        raise ConfigError(f"{where}.group must be a string")
    if not isinstance(version, str) or not version:
        raise ConfigError(f"{where}.version is required")
    if not isinstance(resource, str) or not resource:
        raise ConfigError(f"{where}.resource is required")
    return ResourceConfig(
        group=group,
        version=version,
        resource=resource,
        filters=_parse_filters(entry, where),
    )


def parse_config(data: Any) -> KubeTrailConfig:
    """Build a config from an already-parsed YAML document plus the environment."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    common = data.get("common") or {}
    if not isinstance(common, dict):
        raise ConfigError("common must be a mapping")

    resources = data.get("resources") or []
    if not isinstance(resources, list):
        raise ConfigError("resources must be a list")

    return KubeTrailConfig(
        common=_parse_filters(common, "common"),
        resources=[_parse_resource(entry, i) for i, entry in enumerate(resources)],
        watch=WatchConfig(
            resync_seconds=_env_float("RESYNC_SECONDS", 1.0, min_val=0.1),
            sync_poll_seconds=_env_float("SYNC_POLL_SECONDS", 0.1, min_val=0.01),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "debug")),
        ),
    )


def load_config(path: str | Path = "config.yaml") -> KubeTrailConfig:
    """Read and parse the config file at *path*.

    Raises:
        ConfigError: the file cannot be read or does not parse.
    """
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to unmarshal {path}: {exc}") from exc
    return parse_config(data)
