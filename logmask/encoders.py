"""Record encoders turning an entry and its fields into one serialized line."""

from __future__ import annotations

import base64
import dataclasses
import datetime as _dt
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, List, Protocol, Sequence, runtime_checkable
from uuid import UUID

from .errors import EncodeError, RedactionError
from .levels import Level


LOGGER = logging.getLogger("logmask.encoders")

TimeEncoder = Callable[[_dt.datetime], str]


@dataclass(frozen=True)
class Entry:
    """Metadata of one log record, excluding its fields."""

    level: Level
    message: str
    time: _dt.datetime
    logger_name: str = ""
    caller: str | None = None
    stack: str | None = None


@dataclass(frozen=True)
class Field:
    """A named value attached to one log record."""

    key: str
    value: Any


@runtime_checkable
class JSONMarshaler(Protocol):
    """A value that produces its own JSON representation on demand."""

    def marshal_json(self) -> bytes:  # pragma: no cover - protocol
        ...


class Encoder(Protocol):
    """Anything able to encode an entry together with its fields."""

    def encode_entry(
        self, entry: Entry, fields: Sequence[Field]
    ) -> bytes:  # pragma: no cover - protocol
        ...


def rfc3339(moment: _dt.datetime) -> str:
    """Format a timestamp as RFC 3339 in UTC with second precision."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_dt.timezone.utc)

    return (
        moment.astimezone(_dt.timezone.utc)
        .isoformat(timespec="seconds")
        .replace("+00:00", "Z")
    )


def json_default(value: Any) -> Any:
    """Reduce values the json module does not know to JSON-compatible ones."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}

    for attr in ("model_dump", "to_dict", "as_dict"):
        method = getattr(value, attr, None)
        if callable(method) and not isinstance(value, type):
            return method()

    if isinstance(value, (set, frozenset)):
        return list(value)

    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")

    if isinstance(value, _dt.datetime):
        return rfc3339(value)

    if isinstance(value, (_dt.date, _dt.time)):
        return value.isoformat()

    if isinstance(value, _dt.timedelta):
        return value.total_seconds() * 1000.0

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, (Decimal, UUID)):
        return str(value)

    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    """Serialize ``value`` as compact JSON."""

    return json.dumps(
        value, default=json_default, ensure_ascii=False, separators=(",", ":")
    )


@dataclass(frozen=True)
class EncoderConfig:
    """Key names and formatting shared by the builtin encoders."""

    time_key: str = "time"
    level_key: str = "level"
    name_key: str = "logger"
    caller_key: str = "caller"
    message_key: str = "msg"
    stacktrace_key: str = "stacktrace"
    line_ending: str = "\n"
    encode_time: TimeEncoder = rfc3339


def _encode_fields(fields: Sequence[Field]) -> List[str]:
    """Render each field as a ``"key":value`` JSON member."""

    members: List[str] = []

    for field in fields:
        value = field.value
        try:
            if isinstance(value, JSONMarshaler):
                rendered = value.marshal_json().decode("utf-8")
            else:
                rendered = dumps(value)
        except (RedactionError, TypeError, ValueError, UnicodeDecodeError) as exc:
            # The value is dropped; only the failure reason is written.
            LOGGER.warning("Failed to encode field %s: %s", field.key, exc)
            members.append(f"{dumps(field.key + 'Error')}:{dumps(str(exc))}")
            continue

        members.append(f"{dumps(field.key)}:{rendered}")

    return members


class JSONEncoder:
    """Encode records as single-line JSON objects."""

    def __init__(self, config: EncoderConfig | None = None) -> None:
        self._config = config or EncoderConfig()

    @property
    def config(self) -> EncoderConfig:
        return self._config

    def encode_entry(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        """Encode ``entry`` and ``fields`` into one JSON line."""

        try:
            return self._encode(entry, fields)
        except (TypeError, ValueError, RecursionError) as exc:
            raise EncodeError(f"cannot encode record: {exc}") from exc

    def _encode(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        cfg = self._config
        members = [
            f"{dumps(cfg.level_key)}:{dumps(entry.level.label)}",
            f"{dumps(cfg.time_key)}:{dumps(cfg.encode_time(entry.time))}",
        ]

        if entry.logger_name:
            members.append(f"{dumps(cfg.name_key)}:{dumps(entry.logger_name)}")
        if entry.caller:
            members.append(f"{dumps(cfg.caller_key)}:{dumps(entry.caller)}")

        members.append(f"{dumps(cfg.message_key)}:{dumps(entry.message)}")
        members.extend(_encode_fields(fields))

        if entry.stack:
            members.append(f"{dumps(cfg.stacktrace_key)}:{dumps(entry.stack)}")

        line = "{" + ",".join(members) + "}" + cfg.line_ending
        return line.encode("utf-8")


class ConsoleEncoder:
    """Encode records as tab-separated text followed by a JSON object of fields."""

    def __init__(self, config: EncoderConfig | None = None) -> None:
        self._config = config or EncoderConfig()

    @property
    def config(self) -> EncoderConfig:
        return self._config

    def encode_entry(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        """Encode ``entry`` and ``fields`` into one human-readable line."""

        try:
            return self._encode(entry, fields)
        except (TypeError, ValueError, RecursionError) as exc:
            raise EncodeError(f"cannot encode record: {exc}") from exc

    def _encode(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        cfg = self._config
        columns = [cfg.encode_time(entry.time), entry.level.label.upper()]

        if entry.logger_name:
            columns.append(entry.logger_name)
        if entry.caller:
            columns.append(entry.caller)

        columns.append(entry.message)

        members = _encode_fields(fields)
        if members:
            columns.append("{" + ",".join(members) + "}")

        text = "\t".join(columns)
        if entry.stack:
            text += "\n" + entry.stack

        return (text + cfg.line_ending).encode("utf-8")


__all__ = [
    "Entry",
    "Field",
    "Encoder",
    "EncoderConfig",
    "JSONMarshaler",
    "JSONEncoder",
    "ConsoleEncoder",
    "dumps",
    "json_default",
    "rfc3339",
]
