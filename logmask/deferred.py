"""Complex field values whose masking waits until they are serialized."""

from __future__ import annotations

import json
import logging
from typing import Any

from .encoders import json_default
from .errors import RedactionError, SerializationError
from .fields import SensitiveFieldSet
from .masking import Masker
from .metrics import record_redaction


LOGGER = logging.getLogger("logmask.deferred")


class MaskedValue:
    """Pairs an unmasked complex value with the masking inputs.

    Nothing is walked at construction time; :meth:`marshal_json` masks and
    serializes the wrapped value when an encoder asks for its bytes.
    """

    __slots__ = ("_value", "_fields", "_mask")

    def __init__(self, value: Any, fields: SensitiveFieldSet, mask: str) -> None:
        self._value = value
        self._fields = fields
        self._mask = mask

    @property
    def mask(self) -> str:
        return self._mask

    def masked(self) -> Any:
        """Return the masked plain structure (dicts, lists and scalars)."""

        masker = Masker(self._fields, self._mask)
        try:
            result = masker.mask(self._value)
        except RedactionError as exc:
            LOGGER.warning(
                "Masking failed for %s value: %s", type(self._value).__name__, exc
            )
            record_redaction(masker.masked, errors=1)
            raise

        record_redaction(masker.masked)
        return result

    def marshal_json(self) -> bytes:
        """Mask the wrapped value and return its compact JSON encoding."""

        result = self.masked()

        try:
            text = json.dumps(
                result, default=json_default, ensure_ascii=False, separators=(",", ":")
            )
        except (TypeError, ValueError) as exc:
            record_redaction(0, errors=1)
            raise SerializationError(
                f"cannot serialize masked {type(self._value).__name__}: {exc}"
            ) from exc

        return text.encode("utf-8")

    def __repr__(self) -> str:
        # Never render the wrapped value.
        return f"MaskedValue({type(self._value).__name__})"


__all__ = ["MaskedValue"]
