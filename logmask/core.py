"""Level-gated pairing of an encoder with a sink."""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Sequence

from .config import (
    CONSOLE,
    CONSOLE_ENCODING,
    FILE,
    JSON_ENCODING,
    MEMORY,
    TargetSettings,
)
from .encoders import ConsoleEncoder, Encoder, Entry, Field, JSONEncoder, dumps, rfc3339
from .errors import ConfigurationError
from .levels import Level, parse_level
from .metrics import record_encode_error, record_write
from .redacting import RedactingEncoder
from .sinks import InMemorySink, RotatingFileSink, Sink, StdoutSink


LOGGER = logging.getLogger("logmask.core")


class CoreLike(Protocol):
    def enabled(self, level: Level) -> bool:  # pragma: no cover - protocol
        ...

    def write(self, entry: Entry, fields: Sequence[Field]) -> None:  # pragma: no cover - protocol
        ...

    def sync(self) -> None:  # pragma: no cover - protocol
        ...


def fallback_line(entry: Entry, exc: BaseException) -> bytes:
    """Minimal record written when a record cannot be encoded."""

    payload = {
        "level": Level.ERROR.label,
        "time": rfc3339(entry.time),
        "msg": "log encoding failed",
        "error": f"{type(exc).__name__}: {exc}",
        "original_level": entry.level.label,
    }
    if entry.logger_name:
        payload["logger"] = entry.logger_name

    return (dumps(payload) + "\n").encode("utf-8")


class Core:
    """Encode records at or above ``level`` and hand them to one sink."""

    def __init__(self, encoder: Encoder, sink: Sink, level: Level | str) -> None:
        self._encoder = encoder # The encoder, possibly redacting
        self._sink = sink # The destination for encoded lines
        self._level = parse_level(level) # The minimum level written

    @property
    def encoder(self) -> Encoder:
        return self._encoder

    @property
    def sink(self) -> Sink:
        return self._sink

    @property
    def level(self) -> Level:
        return self._level

    def enabled(self, level: Level) -> bool:
        return level >= self._level

    def write(self, entry: Entry, fields: Sequence[Field]) -> None:
        """Encode and write one record, falling back to an error line."""

        try:
            data = self._encoder.encode_entry(entry, fields)
        except Exception as exc:
            LOGGER.exception("Failed to encode log record for %s", entry.logger_name or "root")
            record_encode_error()
            data = fallback_line(entry, exc)

        self._sink.write(data)
        record_write()

    def sync(self) -> None:
        self._sink.sync()


class TeeCore:
    """Fan records out to several cores."""

    def __init__(self, cores: Iterable[CoreLike]) -> None:
        self._cores: List[CoreLike] = list(cores)

    @property
    def cores(self) -> List[CoreLike]:
        return list(self._cores)

    def enabled(self, level: Level) -> bool:
        return any(core.enabled(level) for core in self._cores)

    def write(self, entry: Entry, fields: Sequence[Field]) -> None:
        errors: List[Exception] = []

        for core in self._cores:
            if not core.enabled(entry.level):
                continue
            try:
                core.write(entry, fields)
            except OSError as exc:
                errors.append(exc)

        if errors:
            raise errors[0]

    def sync(self) -> None:
        errors: List[Exception] = []

        for core in self._cores:
            try:
                core.sync()
            except OSError as exc:
                errors.append(exc)

        if errors:
            raise errors[0]


def build_encoder(target: TargetSettings) -> Encoder:
    """Create the encoder for ``target``, redacting when the filter is on."""

    if target.encoding == JSON_ENCODING:
        encoder: Encoder = JSONEncoder()
    elif target.encoding == CONSOLE_ENCODING:
        encoder = ConsoleEncoder()
    else:
        raise ConfigurationError(
            f"target {target.name!r}: unknown encoding {target.encoding!r}"
        )

    if target.sensitive_filter:
        return RedactingEncoder(encoder, target.sensitive_fields)

    return encoder


def build_sink(target: TargetSettings) -> Sink:
    """Create the sink for ``target``."""

    if target.type == CONSOLE:
        return StdoutSink()

    if target.type == FILE:
        if not target.path:
            raise ConfigurationError(f"target {target.name!r}: file targets need a path")
        return RotatingFileSink(
            target.path,
            max_size_mb=target.max_size_mb,
            max_backups=target.max_backups,
            max_age_days=target.max_age_days,
            compress=target.compress,
        )

    if target.type == MEMORY:
        return InMemorySink()

    raise ConfigurationError(f"target {target.name!r}: unknown type {target.type!r}")


def build_core(target: TargetSettings) -> Core:
    """Build the core for one configured target."""

    level = parse_level(target.level)
    encoder = build_encoder(target)
    return Core(encoder, build_sink(target), level)


__all__ = [
    "Core",
    "TeeCore",
    "build_core",
    "build_encoder",
    "build_sink",
    "fallback_line",
]
