"""Configuration helpers."""

from .loader import (
    get_default_config_path,
    load_config,
    load_config_with_overrides,
    load_default_config,
)
from .models import FallbackConfig, LoggingConfig, PageConfig, ServerConfig, TakeflowConfig

__all__ = [
    "FallbackConfig",
    "LoggingConfig",
    "PageConfig",
    "ServerConfig",
    "TakeflowConfig",
    "get_default_config_path",
    "load_config",
    "load_config_with_overrides",
    "load_default_config",
]
