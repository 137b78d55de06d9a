"""Configuration utilities for the redacting log library."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping

from .masking import DEFAULT_MASK


CONSOLE = "console"
FILE = "file"
MEMORY = "memory"

JSON_ENCODING = "json"
CONSOLE_ENCODING = "console"


def _comma_tuple(value: str | None, *, default: tuple[str, ...]) -> tuple[str, ...]:
    """Convert a comma-separated string to a tuple."""

    if not value:
        return default

    return tuple(filter(None, (part.strip() for part in value.split(","))))


def _bool_env(value: str | None, default: bool) -> bool:
    """Convert a string to a boolean."""

    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _int_env(value: str | None, default: int) -> int:
    if value is None:
        return default

    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_name(target: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in target).upper()


@dataclass(frozen=True)
class TargetSettings:
    """One output target: where records go and what gets masked."""

    name: str
    type: str = CONSOLE
    encoding: str = JSON_ENCODING
    level: str = "debug"
    sensitive_filter: bool = False
    sensitive_fields: tuple[str, ...] = ()
    path: str | None = None
    max_size_mb: int = 100
    max_age_days: int = 0
    max_backups: int = 0
    compress: bool = False

    def with_overrides(self, **kwargs: Any) -> "TargetSettings":
        return replace(self, **kwargs)


@dataclass(frozen=True)
class LoggingSettings:
    """Immutable runtime configuration."""

    mask: str = DEFAULT_MASK
    level: str = "debug"
    targets: tuple[TargetSettings, ...] = ()

    def with_overrides(self, **kwargs: Any) -> "LoggingSettings":
        return replace(self, **kwargs)

    def target(self, name: str) -> TargetSettings | None:
        for target in self.targets:
            if target.name == name:
                return target
        return None


_SETTINGS_LOCK = threading.RLock()
_SETTINGS: LoggingSettings | None = None


def load_target(
    name: str,
    env: Mapping[str, str] | None = None,
    *,
    level: str = "debug",
    sensitive_filter: bool = False,
    sensitive_fields: tuple[str, ...] = (),
) -> TargetSettings:
    """Read ``LOG_TARGET_<NAME>_*`` variables for one target."""

    source = os.environ if env is None else env
    prefix = f"LOG_TARGET_{_env_name(name)}_"

    def _get(key: str) -> str | None:
        return source.get(prefix + key)

    return TargetSettings(
        name=name,
        type=(_get("TYPE") or CONSOLE).strip().lower(),
        encoding=(_get("ENCODING") or JSON_ENCODING).strip().lower(),
        level=(_get("LEVEL") or level).strip().lower(),
        sensitive_filter=_bool_env(_get("SENSITIVE_FILTER"), sensitive_filter),
        sensitive_fields=_comma_tuple(
            _get("SENSITIVE_FIELDS"), default=sensitive_fields
        ),
        path=_get("PATH"),
        max_size_mb=_int_env(_get("MAX_SIZE"), 100),
        max_age_days=_int_env(_get("MAX_AGE"), 0),
        max_backups=_int_env(_get("MAX_BACKUPS"), 0),
        compress=_bool_env(_get("COMPRESS"), False),
    )


def load_settings(env: Mapping[str, str] | None = None) -> LoggingSettings:
    source = os.environ if env is None else env

    level = source.get("LOG_LEVEL", "debug").strip().lower()
    sensitive_filter = _bool_env(source.get("LOG_SENSITIVE_FILTER"), False)
    sensitive_fields = _comma_tuple(source.get("LOG_SENSITIVE_FIELDS"), default=())

    targets = tuple(
        load_target(
            name,
            source,
            level=level,
            sensitive_filter=sensitive_filter,
            sensitive_fields=sensitive_fields,
        )
        for name in _comma_tuple(source.get("LOG_TARGETS"), default=())
    )

    return LoggingSettings(
        mask=source.get("LOG_MASK", DEFAULT_MASK),
        level=level,
        targets=targets,
    )


def configure_settings(
    settings: LoggingSettings | None = None, **overrides: Any
) -> LoggingSettings:
    with _SETTINGS_LOCK:
        resolved = settings or load_settings()
        if overrides:
            resolved = resolved.with_overrides(**overrides)
        global _SETTINGS
        _SETTINGS = resolved
        return _SETTINGS


def get_settings() -> LoggingSettings:
    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            return configure_settings()
        return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    with _SETTINGS_LOCK:
        _SETTINGS = None


__all__ = [
    "CONSOLE",
    "FILE",
    "MEMORY",
    "JSON_ENCODING",
    "CONSOLE_ENCODING",
    "LoggingSettings",
    "TargetSettings",
    "configure_settings",
    "get_settings",
    "load_settings",
    "load_target",
    "reset_settings",
]
