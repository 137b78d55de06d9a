"""Recursive masking of sensitive keys inside nested structured values."""

from __future__ import annotations

import datetime as _dt
import json
import threading
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from .encoders import JSONMarshaler, json_default
from .errors import CanonicalizationError
from .fields import SensitiveFieldSet


DEFAULT_MASK = "***"
MAX_DEPTH = 64

SCALAR_TYPES = (
    str,
    bytes,
    bytearray,
    int,
    float,
    bool,
    type(None),
    Decimal,
    UUID,
    _dt.date,
    _dt.time,
    _dt.timedelta,
)


class ValueKind(Enum):
    """Shape of a value as seen by the masker."""

    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"


def _is_record_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and callable(getattr(value, "_asdict", None))


def classify(value: Any) -> ValueKind:
    """Classify ``value`` by its shape.

    Enum members take the kind of their value, so a member wrapping a mapping
    is walked like any other structured value. Named tuples are records, not
    arrays: they are decomposed into their named fields.
    """

    if isinstance(value, Enum):
        if classify(value.value) is ValueKind.SCALAR:
            return ValueKind.SCALAR
        return ValueKind.UNKNOWN
    if isinstance(value, SCALAR_TYPES):
        return ValueKind.SCALAR
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    if _is_record_tuple(value):
        return ValueKind.UNKNOWN
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    return ValueKind.UNKNOWN


def is_complex(value: Any) -> bool:
    """Return True for values that may hide sensitive keys below them."""

    return classify(value) is not ValueKind.SCALAR


def canonicalize(value: Any) -> Any:
    """Decompose an Unknown value one level into a mapping, a list or a scalar.

    Self-marshaling values are parsed from their own JSON; named tuples become
    dicts of their fields; everything else follows the encoder's reduction
    rules (dataclass fields, ``model_dump``/``to_dict``, sets, enum values).
    Members of the result are left as they are for the masker to walk, so a
    record nested inside another record is decomposed too. Any failure raises
    ``CanonicalizationError``.
    """

    if classify(value) is not ValueKind.UNKNOWN:
        return value

    try:
        if isinstance(value, JSONMarshaler):
            return json.loads(value.marshal_json())
        if _is_record_tuple(value):
            return dict(value._asdict())
        return json_default(value)
    except Exception as exc:
        raise CanonicalizationError(
            f"cannot canonicalize value of type {type(value).__name__}: {exc}"
        ) from exc


class MaskToken:
    """Process-wide replacement string, safe to read and swap from any thread."""

    def __init__(self, value: str = DEFAULT_MASK) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> str:
        with self._lock:
            return self._value

    def set(self, value: str) -> None:
        with self._lock:
            self._value = str(value)

    def __repr__(self) -> str:
        return f"MaskToken({self.get()!r})"


MASK = MaskToken()


def get_mask() -> str:
    """Return the current process-wide mask token."""

    return MASK.get()


def set_mask(value: str) -> None:
    """Replace the process-wide mask token for subsequent encodes."""

    MASK.set(value)


class Masker:
    """Walks one value, replacing values under sensitive keys.

    A masker is single-use bookkeeping around :func:`mask_value`; ``masked``
    counts the keys replaced during the walks it performed.
    """

    def __init__(
        self,
        fields: SensitiveFieldSet,
        mask: str,
        *,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self._fields = fields
        self._mask = mask
        self._max_depth = max_depth
        self.masked = 0

    def mask(self, value: Any) -> Any:
        """Return a masked copy of ``value``; the input is never mutated."""

        return self._walk(value, 0)

    def mask_mapping(self, data: Mapping[Any, Any], depth: int = 0) -> dict:
        self._check_depth(depth)

        result = {}
        for key, item in data.items():
            if self._fields.contains(key):
                # Children of a sensitive key are never visited.
                result[key] = self._mask
                self.masked += 1
                continue
            result[key] = self._walk(item, depth + 1)

        return result

    def mask_sequence(self, items: list | tuple, depth: int = 0) -> list | tuple:
        self._check_depth(depth)

        masked = [self._walk(item, depth + 1) for item in items]
        return tuple(masked) if isinstance(items, tuple) else masked

    def _walk(self, value: Any, depth: int) -> Any:
        kind = classify(value)

        if kind is ValueKind.SCALAR:
            return value
        if kind is ValueKind.OBJECT:
            return self.mask_mapping(value, depth)
        if kind is ValueKind.ARRAY:
            return self.mask_sequence(value, depth)

        self._check_depth(depth)
        canonical = canonicalize(value)
        return self._walk(canonical, depth + 1)

    def _check_depth(self, depth: int) -> None:
        if depth > self._max_depth:
            raise CanonicalizationError(
                f"value nested deeper than {self._max_depth} levels"
            )


def mask_value(
    value: Any,
    fields: SensitiveFieldSet,
    mask: str | None = None,
) -> Any:
    """Return ``value`` with every sensitive key's value replaced by ``mask``.

    Mappings and sequences are rebuilt, scalars are returned as-is and any
    other object is first decomposed by :func:`canonicalize`. Raises
    ``CanonicalizationError`` when a value cannot be decomposed or is nested
    beyond ``MAX_DEPTH``; the unmasked value is never returned in that case.
    """

    token = get_mask() if mask is None else mask
    return Masker(fields, token).mask(value)


__all__ = [
    "DEFAULT_MASK",
    "MAX_DEPTH",
    "MASK",
    "MaskToken",
    "Masker",
    "ValueKind",
    "canonicalize",
    "classify",
    "get_mask",
    "is_complex",
    "mask_value",
    "set_mask",
]
