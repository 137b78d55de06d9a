"""Case-insensitive sensitive field name lookups."""

from __future__ import annotations

from typing import Iterable


def _normalize_key(key: str) -> str:
    return key.lower()


class SensitiveFieldSet:
    """Immutable set of lower-cased sensitive field names."""

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str] | None = None) -> None:
        """Build the set from configured names; empty names are ignored."""

        self._names = frozenset(
            _normalize_key(name) for name in (names or ()) if name
        )

    def contains(self, name: object) -> bool:
        """Return True when ``name`` matches a configured field, ignoring case."""

        if not isinstance(name, str) or not name:
            return False

        return _normalize_key(name) in self._names

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(sorted(self._names))

    def __repr__(self) -> str:
        return f"SensitiveFieldSet({sorted(self._names)!r})"


__all__ = ["SensitiveFieldSet"]
