"""Fixtures for logmask unit tests."""

from __future__ import annotations

import datetime as _dt
import json
from typing import Any, Dict, List, Sequence

import pytest

from logmask.config import load_settings, reset_settings
from logmask.encoders import Entry, Field, JSONEncoder
from logmask.fields import SensitiveFieldSet
from logmask.levels import Level
from logmask.logger import reset_loggers
from logmask.masking import DEFAULT_MASK, set_mask
from logmask.metrics import reset_metrics
from logmask.redacting import RedactingEncoder


class RecordingEncoder:
    """Encoder double remembering the field lists it receives."""

    def __init__(self) -> None:
        self.calls: List[Sequence[Field]] = []

    def encode_entry(self, entry: Entry, fields: Sequence[Field]) -> bytes:
        self.calls.append(fields)
        return b"recorded\n"

    @property
    def last(self) -> Sequence[Field]:
        return self.calls[-1]


def pytest_collection_modifyitems(config, items):  # pragma: no cover - Pytest hook
    """Tag every test in this directory with the `logmask` marker."""

    for item in items:
        item.add_marker(pytest.mark.logmask)


@pytest.fixture(autouse=True)
def _reset_logmask_state():
    """Reset loggers, settings, metrics and the mask token around each test."""

    reset_loggers()
    reset_settings()
    reset_metrics()
    set_mask(DEFAULT_MASK)
    yield
    reset_loggers()
    reset_settings()
    reset_metrics()
    set_mask(DEFAULT_MASK)


@pytest.fixture
def sensitive_fields() -> SensitiveFieldSet:
    return SensitiveFieldSet(["password", "Token", "secret"])


@pytest.fixture
def entry() -> Entry:
    return Entry(
        level=Level.INFO,
        message="user login",
        time=_dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=_dt.timezone.utc),
        logger_name="auth",
    )


@pytest.fixture
def recording_encoder() -> RecordingEncoder:
    return RecordingEncoder()


@pytest.fixture
def redacting_encoder(sensitive_fields) -> RedactingEncoder:
    """Redacting encoder wrapping the builtin JSON encoder."""

    return RedactingEncoder(JSONEncoder(), sensitive_fields)


@pytest.fixture
def decode():
    """Parse one encoded JSON line."""

    def _decode(data: bytes) -> Dict[str, Any]:
        return json.loads(data.decode("utf-8"))

    return _decode


@pytest.fixture
def memory_settings():
    """Two in-memory targets, one of them filtering sensitive fields."""

    return load_settings(
        {
            "LOG_LEVEL": "debug",
            "LOG_SENSITIVE_FIELDS": "password,token",
            "LOG_TARGETS": "audit,plain",
            "LOG_TARGET_AUDIT_TYPE": "memory",
            "LOG_TARGET_AUDIT_SENSITIVE_FILTER": "1",
            "LOG_TARGET_PLAIN_TYPE": "memory",
            "LOG_TARGET_PLAIN_LEVEL": "warn",
        }
    )
