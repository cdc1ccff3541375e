"""Config loader — reads YAML, applies SAINTMODE_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from saintmode.config.schema import AppConfig


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.

    Environment variable overrides:
        SAINTMODE_DEFAULT_TIMEOUT_S  -> cache.default_timeout_s
        SAINTMODE_REFRESH_WORKERS    -> cache.refresh_workers
        SAINTMODE_LOG_LEVEL          -> logging.level
        SAINTMODE_LOG_FORMAT         -> logging.format
        SAINTMODE_LIBRARY_LOG_LEVEL  -> logging.library_level
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p) as f:
                data = yaml.safe_load(f) or {}

    # Apply env var overrides; pydantic coerces the strings
    timeout = os.environ.get("SAINTMODE_DEFAULT_TIMEOUT_S")
    if timeout:
        data.setdefault("cache", {})["default_timeout_s"] = timeout

    workers = os.environ.get("SAINTMODE_REFRESH_WORKERS")
    if workers:
        data.setdefault("cache", {})["refresh_workers"] = workers

    log_level = os.environ.get("SAINTMODE_LOG_LEVEL")
    if log_level:
        data.setdefault("logging", {})["level"] = log_level

    log_format = os.environ.get("SAINTMODE_LOG_FORMAT")
    if log_format:
        data.setdefault("logging", {})["format"] = log_format

    library_level = os.environ.get("SAINTMODE_LIBRARY_LOG_LEVEL")
    if library_level:
        data.setdefault("logging", {})["library_level"] = library_level

    return AppConfig.model_validate(data)
