"""Configuration loading and management."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from cancelctx.errors import ConfigurationError

ENV_PREFIX = "CANCELCTX_"
CONFIG_PATH_ENV = "CANCELCTX_CONFIG"

DEFAULT_MAX_LISTENERS = 100

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


@dataclass(slots=True)
class ContextConfig:
    """Settings shared by every context in a tree.

    Priority: overrides > env vars > YAML file > defaults
    """

    # Re-emit the cancellation notification on every cancel() call.
    renotify: bool = False
    # Warn when one context holds more live listeners than this. 0 disables.
    max_listeners: int = DEFAULT_MAX_LISTENERS

    # Logging
    debug: bool = False
    json_logs: bool = False


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}
    except (yaml.YAMLError, OSError):
        return {}


def load_config(
    *,
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ContextConfig:
    """Load configuration from all sources with proper priority."""
    load_dotenv(find_dotenv(usecwd=True))
    config = ContextConfig()

    # 1. YAML file
    config_path = path or os.environ.get(CONFIG_PATH_ENV)
    if config_path:
        _apply_dict(config, load_yaml_config(Path(config_path)))

    # 2. Environment variables
    env: dict[str, Any] = {}
    for attr in ("renotify", "max_listeners", "debug", "json_logs"):
        raw = os.environ.get(ENV_PREFIX + attr.upper())
        if raw is not None:
            env[attr] = raw
    _apply_dict(config, env)

    # 3. Explicit overrides (highest priority)
    _apply_dict(config, overrides or {})

    return config


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    raise ConfigurationError(f"{key} must be a boolean, got {value!r}", key=key)


def _parse_count(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", key=key)
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", key=key) from None
    if count < 0:
        raise ConfigurationError(f"{key} must not be negative, got {count}", key=key)
    return count


def _apply_dict(config: ContextConfig, data: dict[str, Any]) -> None:
    """Apply dictionary values to config, only for known fields."""
    field_map = {
        "renotify": "renotify",
        "max_listeners": "max_listeners",
        "debug": "debug",
        "json_logs": "json_logs",
        # Aliases from YAML config
        "maxListeners": "max_listeners",
        "jsonLogs": "json_logs",
    }
    for key, attr in field_map.items():
        if key not in data or data[key] is None:
            continue
        if attr == "max_listeners":
            setattr(config, attr, _parse_count(key, data[key]))
        else:
            setattr(config, attr, _parse_bool(key, data[key]))
