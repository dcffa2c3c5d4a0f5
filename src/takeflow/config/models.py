from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, cast

from takeflow.exceptions import ConfigError

_LOG_FORMATS = ("json", "console")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _ensure_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{field_name} must be a mapping")
    return cast(Mapping[str, Any], value)


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(f"{field_name} must be a bool")


def _coerce_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be an int")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise ConfigError(f"{field_name} must be an int") from exc
    raise ConfigError(f"{field_name} must be an int")


def _coerce_status(value: Any, field_name: str) -> int:
    code = _coerce_int(value, field_name)
    if not 100 <= code <= 599:
        raise ConfigError(f"{field_name} must be an HTTP status code, got {code}")
    return code


def _coerce_choice(value: Any, choices: tuple[str, ...], field_name: str, *, upper: bool = False) -> str:
    text = str(value).strip()
    text = text.upper() if upper else text.lower()
    if text not in choices:
        raise ConfigError(f"{field_name} must be one of {', '.join(choices)}")
    return text


@dataclass(frozen=True)
class PageConfig:
    """Static page served by a fallback.

    Attributes:
        body: Page content.
        content_type: Content-Type header value.
        status: Status of the page; None keeps the failure's status.
    """

    body: str
    content_type: str = "text/plain; charset=utf-8"
    status: int | None = None

    @classmethod
    def from_dict(cls, data: Any, field_name: str = "page") -> PageConfig:
        if isinstance(data, str):
            return cls(body=data)
        mapping = _ensure_mapping(data, field_name)
        if "body" not in mapping:
            raise ConfigError(f"{field_name}.body is required")
        status = mapping.get("status")
        return cls(
            body=str(mapping["body"]),
            content_type=str(mapping.get("content_type", cls.content_type)),
            status=None if status is None else _coerce_status(status, f"{field_name}.status"),
        )


@dataclass(frozen=True)
class FallbackConfig:
    """Fallback behaviour of the served take.

    Attributes:
        log_failures: Log every failure before looking for a page.
        pages: Pages keyed by the status code they answer.
        default_page: Page for any status without its own page.
    """

    log_failures: bool = True
    pages: dict[int, PageConfig] = field(default_factory=dict)
    default_page: PageConfig | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FallbackConfig:
        mapping = _ensure_mapping(data or {}, "fallback")
        pages_raw = _ensure_mapping(mapping.get("pages") or {}, "fallback.pages")
        pages = {
            _coerce_status(code, f"fallback.pages.{code}"): PageConfig.from_dict(
                page, f"fallback.pages.{code}"
            )
            for code, page in pages_raw.items()
        }
        default_raw = mapping.get("default_page")
        return cls(
            log_failures=_coerce_bool(mapping.get("log_failures", True), "fallback.log_failures"),
            pages=pages,
            default_page=None
            if default_raw is None
            else PageConfig.from_dict(default_raw, "fallback.default_page"),
        )


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080

    @classmethod
    def from_dict(cls, data: Any) -> ServerConfig:
        mapping = _ensure_mapping(data or {}, "server")
        port = _coerce_int(mapping.get("port", cls.port), "server.port")
        if not 0 < port < 65536:
            raise ConfigError("server.port must be between 1 and 65535")
        return cls(host=str(mapping.get("host", cls.host)), port=port)


@dataclass(frozen=True)
class LoggingConfig:
    format: str = "json"
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Any) -> LoggingConfig:
        mapping = _ensure_mapping(data or {}, "logging")
        return cls(
            format=_coerce_choice(mapping.get("format", cls.format), _LOG_FORMATS, "logging.format"),
            level=_coerce_choice(
                mapping.get("level", cls.level), _LOG_LEVELS, "logging.level", upper=True
            ),
        )


@dataclass(frozen=True)
class TakeflowConfig:
    """Root configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TakeflowConfig:
        mapping = _ensure_mapping(data, "config")
        unknown = set(mapping) - {"server", "logging", "fallback"}
        if unknown:
            raise ConfigError(f"Unknown config sections: {', '.join(sorted(unknown))}")
        return cls(
            server=ServerConfig.from_dict(mapping.get("server")),
            logging=LoggingConfig.from_dict(mapping.get("logging")),
            fallback=FallbackConfig.from_dict(mapping.get("fallback")),
        )
