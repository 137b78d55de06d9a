"""Exception hierarchy for the redacting log library."""

from __future__ import annotations


class LogMaskError(Exception):
    """Base exception for all logmask errors."""


class ConfigurationError(LogMaskError):
    """Invalid configuration detected while building loggers or cores."""


class RedactionError(LogMaskError):
    """A value could not be masked."""


class CanonicalizationError(RedactionError):
    """A value could not be decomposed into mappings, sequences and scalars."""


class SerializationError(RedactionError):
    """A masked value could not be serialized."""


class EncodeError(LogMaskError):
    """A record could not be encoded."""


__all__ = [
    "LogMaskError",
    "ConfigurationError",
    "RedactionError",
    "CanonicalizationError",
    "SerializationError",
    "EncodeError",
]
