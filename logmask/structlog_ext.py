"""structlog integration: mask sensitive keys right before rendering."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, MutableMapping

import structlog

from .errors import RedactionError
from .fields import SensitiveFieldSet
from .masking import MASK, Masker, MaskToken, is_complex
from .metrics import record_redaction


LOGGER = logging.getLogger("logmask.structlog_ext")

Renderer = Callable[[Any, str, MutableMapping[str, Any]], Any]


class RedactingRenderer:
    """Wrap a structlog renderer and mask the event dict it receives.

    Keys of the event dict follow the same rules as record fields: sensitive
    names are replaced by the mask token whatever their value, and nested
    mappings or sequences are walked by the masker. A value that cannot be
    masked is dropped in favor of a ``<key>Error`` entry.
    """

    def __init__(
        self,
        renderer: Renderer,
        fields: SensitiveFieldSet | Iterable[str],
        *,
        mask: MaskToken | str | None = None,
    ) -> None:
        if not isinstance(fields, SensitiveFieldSet):
            fields = SensitiveFieldSet(fields)

        self._renderer = renderer
        self._fields = fields
        self._mask = MASK if mask is None else mask

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> Any:
        mask = self._mask
        token = mask.get() if isinstance(mask, MaskToken) else mask
        masker = Masker(self._fields, token)

        sanitized: dict[str, Any] = {}
        masked = 0
        errors = 0

        for key, value in event_dict.items():
            if self._fields.contains(key):
                sanitized[key] = token
                masked += 1
            elif is_complex(value):
                try:
                    sanitized[key] = masker.mask(value)
                except RedactionError as exc:
                    LOGGER.warning("Masking failed for event key %s: %s", key, exc)
                    sanitized[f"{key}Error"] = str(exc)
                    errors += 1
            else:
                sanitized[key] = value

        record_redaction(masked + masker.masked, errors=errors)
        return self._renderer(logger, method_name, sanitized)


def configure_structlog(
    fields: Iterable[str],
    *,
    mask: MaskToken | str | None = None,
    renderer: Renderer | None = None,
    level: int = logging.INFO,
) -> None:
    """Configure structlog to render JSON through a :class:`RedactingRenderer`."""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            RedactingRenderer(
                renderer or structlog.processors.JSONRenderer(),
                fields,
                mask=mask,
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


__all__ = ["RedactingRenderer", "configure_structlog"]
