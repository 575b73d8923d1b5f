"""Config loader with schema validation for the sleep tracker."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_DATETIME_FORMAT = "%A %b-%d-%Y %H:%M"
DEFAULT_TITLE = "Here is your sleep data"
DEFAULT_IO_WORKERS = 4


class ConfigError(ValueError):
    """Raised when a configuration file fails validation."""


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False


@dataclass(frozen=True)
class ExecutorConfig:
    io_workers: int = DEFAULT_IO_WORKERS


@dataclass(frozen=True)
class DisplayConfig:
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    title: str = DEFAULT_TITLE


@dataclass(frozen=True)
class Config:
    source: Path
    config_version: str
    database: DatabaseConfig
    executor: ExecutorConfig
    display: DisplayConfig


def load_config(path: str | Path) -> Config:
    """Load and validate a YAML/JSON config file."""
    source = Path(path)
    if not source.exists():
        raise ConfigError(f"Config file not found: {source}")

    data = _deserialize(source)
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")
    return _parse_config(data, source)


def _deserialize(source: Path) -> Any:
    text = source.read_text(encoding="utf-8")
    suffix = source.suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Config file {source} could not be parsed: {exc}") from exc


def _parse_config(data: Dict[str, Any], source: Path) -> Config:
    config_version = _require_str(data, "config_version")

    database_section = _require_dict(data, "database")
    database = DatabaseConfig(
        url=_require_str(database_section, "url"),
        echo=_coerce_bool(database_section.get("echo", False), "database.echo"),
    )

    executor_section = _optional_dict(data, "executor")
    executor = ExecutorConfig(
        io_workers=_coerce_int(
            executor_section.get("io_workers", DEFAULT_IO_WORKERS),
            "executor.io_workers",
            minimum=1,
        ),
    )

    display_section = _optional_dict(data, "display")
    display = DisplayConfig(
        datetime_format=_optional_str(
            display_section.get("datetime_format"), "display.datetime_format"
        ) or DEFAULT_DATETIME_FORMAT,
        title=_optional_str(display_section.get("title"), "display.title") or DEFAULT_TITLE,
    )

    return Config(
        source=source,
        config_version=config_version,
        database=database,
        executor=executor,
        display=display,
    )


def _require_dict(obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = obj.get(key)
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _optional_dict(obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = obj.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} block must be a mapping if provided")
    return value


def _require_str(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when provided")
    return value


def _coerce_int(value: Any, field: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"'{field}' must be an integer, not boolean")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{field}' must be an integer") from exc
    if minimum is not None and parsed < minimum:
        raise ConfigError(f"'{field}' must be >= {minimum}")
    return parsed


def _coerce_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean")
    return value


__all__ = [
    "Config",
    "ConfigError",
    "DEFAULT_DATETIME_FORMAT",
    "DEFAULT_IO_WORKERS",
    "DEFAULT_TITLE",
    "DatabaseConfig",
    "DisplayConfig",
    "ExecutorConfig",
    "load_config",
]
