"""Public API for the redacting structured logging library."""

from __future__ import annotations

from .config import LoggingSettings, TargetSettings, configure_settings, get_settings, load_settings
from .deferred import MaskedValue
from .encoders import ConsoleEncoder, Encoder, EncoderConfig, Entry, Field, JSONEncoder
from .errors import (
    CanonicalizationError,
    ConfigurationError,
    EncodeError,
    LogMaskError,
    RedactionError,
    SerializationError,
)
from .fields import SensitiveFieldSet
from .levels import Level, parse_level
from .logger import (
    Logger,
    add_target_logger,
    debug_to,
    error_to,
    get_logger,
    get_target_logger,
    info_to,
    init,
    log_to,
    reset_loggers,
    sync,
    warn_to,
)
from .masking import MaskToken, get_mask, mask_value, set_mask
from .metrics import get_metrics
from .redacting import RedactingEncoder

__all__ = [
    "configure",
    "init",
    "get_logger",
    "get_target_logger",
    "add_target_logger",
    "log_to",
    "debug_to",
    "info_to",
    "warn_to",
    "error_to",
    "sync",
    "reset_loggers",
    "Logger",
    "Level",
    "parse_level",
    "LoggingSettings",
    "TargetSettings",
    "load_settings",
    "get_settings",
    "get_metrics",
    "SensitiveFieldSet",
    "MaskToken",
    "get_mask",
    "set_mask",
    "mask_value",
    "MaskedValue",
    "RedactingEncoder",
    "Encoder",
    "EncoderConfig",
    "Entry",
    "Field",
    "JSONEncoder",
    "ConsoleEncoder",
    "LogMaskError",
    "ConfigurationError",
    "RedactionError",
    "CanonicalizationError",
    "SerializationError",
    "EncodeError",
]


def configure(settings: LoggingSettings | None = None, **overrides) -> LoggingSettings:
    """Resolve settings and initialize the process-wide loggers."""

    resolved = configure_settings(settings, **overrides)
    init(resolved)

    return resolved
