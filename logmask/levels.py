"""Log severity levels."""

from __future__ import annotations

from enum import IntEnum

from .errors import ConfigurationError


class Level(IntEnum):
    """Ordered log severities."""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    PANIC = 50
    FATAL = 60

    @property
    def label(self) -> str:
        """Lower-case level name as written in encoded records."""

        return self.name.lower()


_ALIASES = {
    "warning": Level.WARN,
    "critical": Level.PANIC,
}


def parse_level(name: str | Level) -> Level:
    """Resolve a configured level name, raising ``ConfigurationError`` if unknown."""

    if isinstance(name, Level):
        return name

    normalized = (name or "").strip().lower()

    if normalized in _ALIASES:
        return _ALIASES[normalized]

    try:
        return Level[normalized.upper()]
    except KeyError:
        raise ConfigurationError(f"invalid log level: {name!r}") from None


__all__ = ["Level", "parse_level"]
