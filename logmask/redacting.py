"""Encoder decorator that masks sensitive fields before delegating."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .deferred import MaskedValue
from .encoders import Encoder, Entry, Field
from .fields import SensitiveFieldSet
from .masking import MASK, MaskToken, is_complex
from .metrics import record_redaction


class RedactingEncoder:
    """Wraps another encoder and hides the values of sensitive fields.

    Scalar fields with a sensitive name are replaced by the mask token.
    Mappings, sequences and other structured values are handed to the wrapped
    encoder as :class:`MaskedValue` instances, so their nested keys are masked
    only when the wrapped encoder serializes them. Field order and names are
    kept as given.

    ``mask`` may be a fixed string or a :class:`MaskToken` cell; by default
    the process-wide cell is read once per :meth:`encode_entry` call. With
    ``fields=None`` the encoder forwards every record untouched.
    """

    def __init__(
        self,
        encoder: Encoder,
        fields: SensitiveFieldSet | Iterable[str] | None,
        *,
        mask: MaskToken | str | None = None,
    ) -> None:
        if fields is not None and not isinstance(fields, SensitiveFieldSet):
            fields = SensitiveFieldSet(fields)

        self._encoder = encoder # The wrapped encoder
        self._fields = fields # Sensitive names, or None for pass-through
        self._mask = MASK if mask is None else mask # Token source

    @property
    def wrapped(self) -> Encoder:
        return self._encoder

    @property
    def fields(self) -> SensitiveFieldSet | None:
        return self._fields

    def current_mask(self) -> str:
        """Return the token the next encode call will use."""

        mask = self._mask
        return mask.get() if isinstance(mask, MaskToken) else mask

    def encode_entry(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        """Mask ``fields`` and encode them with the wrapped encoder."""

        if self._fields is None or not fields:
            return self._encoder.encode_entry(entry, fields)

        return self._encoder.encode_entry(entry, self.filter_fields(fields))

    def filter_fields(self, fields: Sequence[Field]) -> List[Field]:
        """Return the field list the wrapped encoder receives."""

        sensitive = self._fields
        if sensitive is None:
            return list(fields)

        token = self.current_mask()
        filtered: List[Field] = []
        masked = 0

        for field in fields:
            if sensitive.contains(field.key):
                filtered.append(Field(field.key, token))
                masked += 1
            elif is_complex(field.value):
                filtered.append(
                    Field(field.key, MaskedValue(field.value, sensitive, token))
                )
            else:
                filtered.append(field)

        record_redaction(masked)
        return filtered


__all__ = ["RedactingEncoder"]
