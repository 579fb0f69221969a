"""Runtime settings: where data lives, which timezone defines "today", fetch timeout.

Values come from an optional YAML file and are then overridden by
``SALINHA_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_DATA_DIR = "data"
DEFAULT_TIMEZONE = "America/Sao_Paulo"
DEFAULT_FETCH_TIMEOUT = 10.0

ENV_DATA_DIR = "SALINHA_DATA_DIR"
ENV_TIMEZONE = "SALINHA_TIMEZONE"
ENV_FETCH_TIMEOUT = "SALINHA_FETCH_TIMEOUT"
ENV_CONFIG_FILE = "SALINHA_CONFIG"


@dataclass(frozen=True)
class Settings:
    data_dir: str = DEFAULT_DATA_DIR
    timezone: str = DEFAULT_TIMEZONE
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT

    def __post_init__(self) -> None:
        _resolve_zone(self.timezone)
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be greater than zero")

    @property
    def tzinfo(self) -> ZoneInfo:
        return _resolve_zone(self.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tzinfo)


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    environ = os.environ if env is None else env
    config_path = path or environ.get(ENV_CONFIG_FILE)

    values: dict[str, Any] = {}
    if config_path:
        values.update(_read_config_file(Path(config_path)))

    if environ.get(ENV_DATA_DIR):
        values["data_dir"] = environ[ENV_DATA_DIR]
    if environ.get(ENV_TIMEZONE):
        values["timezone"] = environ[ENV_TIMEZONE]
    if environ.get(ENV_FETCH_TIMEOUT):
        values["fetch_timeout"] = environ[ENV_FETCH_TIMEOUT]

    settings = Settings()
    if "data_dir" in values:
        settings = replace(settings, data_dir=str(values["data_dir"]))
    if "timezone" in values:
        settings = replace(settings, timezone=str(values["timezone"]))
    if "fetch_timeout" in values:
        try:
            timeout = float(values["fetch_timeout"])
        except (TypeError, ValueError) as error:
            raise ValueError(f"fetch_timeout must be a number, got {values['fetch_timeout']!r}") from error
        settings = replace(settings, fetch_timeout=timeout)
    return settings


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise ValueError(f"Config file not found: {path}") from error
    except yaml.YAMLError as error:
        raise ValueError(f"Config file is not valid YAML: {path}") from error

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return payload


def _resolve_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as error:
        raise ValueError(f"Unknown timezone: {name}") from error
