"""
Configuration Loader (``taskboard_config.loader``).

Responsibility
--------------
Loads a YAML settings file, applies environment overrides and parses the
result into the frozen ``taskboard_config.schema`` dataclasses.  Callers use
``taskboard_config.get_active_config()``; this module is its implementation.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong section type or out-of-range value  -> ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from taskboard_config.schema import (
    BulkSettings,
    DatabaseSettings,
    LoggingSettings,
    TaskboardConfig,
)

# Environment variable -> (section, key, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "TASKBOARD_DATABASE_URL": ("database", "url", str),
    "TASKBOARD_BATCH_SIZE": ("bulk", "batch_size", int),
    "TASKBOARD_PAUSE_SECONDS": ("bulk", "pause_seconds", float),
    "TASKBOARD_MAX_ATTEMPTS": ("bulk", "max_attempts", int),
    "TASKBOARD_LOG_LEVEL": ("logging", "level", str),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def apply_env_overrides(
    data: Mapping[str, Any], environ: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged: dict[str, Any] = {
        key: dict(value) if isinstance(value, Mapping) else value
        for key, value in data.items()
    }
    for var, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError as exc:
            raise ValueError(f"{var}={raw!r}: {exc}") from exc
        merged.setdefault(section, {})[key] = value
    return merged


def _section(data: Mapping[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Section '{name}' must be a mapping")
    return dict(value)


def parse_config(data: Mapping[str, Any], source: str | None = None) -> TaskboardConfig:
    """
    Parse a raw settings mapping into a ``TaskboardConfig``.

    Unknown keys inside a section raise ``ValueError`` (via the dataclass
    constructor's ``TypeError``) so typos are not silently ignored.
    """
    try:
        database = DatabaseSettings(**_section(data, "database"))
        bulk = BulkSettings(**_section(data, "bulk"))
        logging_settings = LoggingSettings(**_section(data, "logging"))
    except TypeError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    return TaskboardConfig(
        database=database,
        bulk=bulk,
        logging=logging_settings,
        source=source,
    )
