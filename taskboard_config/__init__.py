"""
taskboard_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads settings files or
    environment variables directly.

Architecture position:
    Configuration.  Sits beside ``taskboard_kernel`` and below
    ``taskboard_bulk``.  The kernel MUST NEVER import from
    ``taskboard_config``.

Failure modes:
    - ``FileNotFoundError`` -- explicit config path does not exist.
    - ``ValueError`` -- schema or range validation failures.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from taskboard_config.loader import apply_env_overrides, load_yaml_file, parse_config
from taskboard_config.schema import (
    BulkSettings,
    DatabaseSettings,
    LoggingSettings,
    TaskboardConfig,
)
from taskboard_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"

__all__ = [
    "BulkSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "TaskboardConfig",
    "get_active_config",
]


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> TaskboardConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``, or ``$TASKBOARD_CONFIG`` when set.
        environ: Environment mapping for overrides (defaults to os.environ).

    Returns:
        A frozen ``TaskboardConfig``.
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("TASKBOARD_CONFIG") or _DEFAULT_CONFIG_FILE)

    data = apply_env_overrides(load_yaml_file(path), env)
    config = parse_config(data, source=str(path))

    _logger.info(
        "config_loaded",
        extra={
            "config_source": config.source,
            "batch_size": config.bulk.batch_size,
            "pause_seconds": config.bulk.pause_seconds,
            "max_attempts": config.bulk.max_attempts,
        },
    )
    return config
