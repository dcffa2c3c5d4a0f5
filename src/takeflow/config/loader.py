"""YAML configuration loading.

String values may reference the environment as ``${NAME}`` or
``${NAME:-default}``. The document may nest everything under a top-level
``takeflow:`` key; sibling keys outside it take precedence.
"""
from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from takeflow.exceptions import ConfigError

from .models import TakeflowConfig

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")
_ROOT_SECTION = "takeflow"
_SUFFIXES = frozenset({".yaml", ".yml"})
_DEFAULT_NAMES = ("takeflow.yaml", "takeflow.yml")


def get_default_config_path() -> Path | None:
    """Return the first existing config file in the cwd, then the home directory."""
    for directory, prefix in ((Path.cwd(), ""), (Path.home(), ".")):
        for name in _DEFAULT_NAMES:
            candidate = directory / f"{prefix}{name}"
            if candidate.is_file():
                return candidate
    return None


def load_default_config() -> TakeflowConfig:
    """Load the default config file, or the built-in defaults when none exists."""
    path = get_default_config_path()
    return TakeflowConfig() if path is None else load_config(path)


def load_config(path: str | Path | None) -> TakeflowConfig:
    """Load ``path`` into a TakeflowConfig; no path means the default lookup."""
    if not path:
        return load_default_config()
    return _build(_read_mapping(path), f"Failed to build config from {path}")


def load_config_with_overrides(
    base_path: str | Path, *override_paths: str | Path
) -> TakeflowConfig:
    """Load ``base_path`` and deep-merge each override file over it, in order."""
    merged = _read_mapping(base_path)
    for override in override_paths:
        merged = _deep_merge(merged, _read_mapping(override))
    return _build(merged, "Failed to build config with overrides")


def _build(data: Mapping[str, Any], error_message: str) -> TakeflowConfig:
    try:
        return TakeflowConfig.from_dict(data)
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(error_message) from exc


def _read_mapping(path: str | Path) -> dict[str, Any]:
    config_path = Path(path).expanduser()
    if config_path.suffix.lower() not in _SUFFIXES:
        raise ConfigError(f"Unsupported config file type: {config_path.suffix}")
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with config_path.open(encoding="utf-8") as stream:
            parsed = yaml.safe_load(stream)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config file: {config_path}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise ConfigError("Configuration must be a mapping")
    return _unwrap_root(_expand(parsed))


def _expand(value: Any) -> Any:
    match value:
        case str():
            return _ENV_PATTERN.sub(_substitute, value)
        case Mapping():
            return {key: _expand(item) for key, item in value.items()}
        case list():
            return [_expand(item) for item in value]
        case _:
            return value


def _substitute(match: re.Match[str]) -> str:
    name, default = match.group(1), match.group(2)
    env_value = os.getenv(name)
    if env_value:
        return env_value
    if default is None:
        raise ConfigError(f"Environment variable '{name}' is not set and no default provided")
    return default


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _unwrap_root(data: Mapping[str, Any]) -> dict[str, Any]:
    if _ROOT_SECTION not in data:
        return dict(data)
    nested = data[_ROOT_SECTION]
    if not isinstance(nested, Mapping):
        raise ConfigError(f"{_ROOT_SECTION} section must be a mapping")
    siblings = {key: value for key, value in data.items() if key != _ROOT_SECTION}
    return {**nested, **siblings}
