"""Tests for cores, the tee core and target wiring."""

from __future__ import annotations

import pytest

from logmask.config import TargetSettings
from logmask.core import Core, TeeCore, build_core, build_encoder, build_sink
from logmask.encoders import ConsoleEncoder, Field, JSONEncoder
from logmask.errors import ConfigurationError, EncodeError
from logmask.levels import Level
from logmask.metrics import get_metrics
from logmask.redacting import RedactingEncoder
from logmask.sinks import InMemorySink, RotatingFileSink, StdoutSink


class _FailingEncoder:
    def encode_entry(self, entry, fields):
        raise EncodeError("no luck")


class _FailingSink:
    def write(self, data: bytes) -> None:
        raise OSError("disk full")

    def sync(self) -> None:
        raise OSError("disk gone")


def test_core_writes_enabled_records(entry):
    """Records at or above the core level reach the sink."""

    sink = InMemorySink()
    core = Core(JSONEncoder(), sink, "info")

    assert core.enabled(Level.INFO)
    assert not core.enabled(Level.DEBUG)

    core.write(entry, [Field("user", "ada")])

    assert sink.records[0]["user"] == "ada"
    assert get_metrics().records_written == 1


def test_encode_failure_writes_fallback_line(entry):
    """An encoder failure writes a safe error line instead."""

    sink = InMemorySink()
    core = Core(_FailingEncoder(), sink, Level.DEBUG)

    core.write(entry, [Field("password", "hunter2")])

    (record,) = sink.records
    assert record["level"] == "error"
    assert record["msg"] == "log encoding failed"
    assert record["original_level"] == "info"
    assert record["logger"] == "auth"
    assert "hunter2" not in sink.lines[0]
    metrics = get_metrics()
    assert metrics.encode_errors == 1
    assert metrics.records_written == 1


def test_invalid_level_is_rejected():
    """Unknown level names fail at construction."""

    with pytest.raises(ConfigurationError):
        Core(JSONEncoder(), InMemorySink(), "verbose")


def test_tee_core_respects_each_level(entry):
    """Each core in a tee applies its own level."""

    info_sink, error_sink = InMemorySink(), InMemorySink()
    tee = TeeCore([Core(JSONEncoder(), info_sink, "info"), Core(JSONEncoder(), error_sink, "error")])

    assert tee.enabled(Level.INFO)
    assert not tee.enabled(Level.DEBUG)

    tee.write(entry, [])

    assert len(info_sink.lines) == 1
    assert error_sink.lines == []


def test_tee_core_keeps_writing_after_sink_failure(entry):
    """One failing sink does not starve the others."""

    good = InMemorySink()
    tee = TeeCore([Core(JSONEncoder(), _FailingSink(), "debug"), Core(JSONEncoder(), good, "debug")])

    with pytest.raises(OSError, match="disk full"):
        tee.write(entry, [])

    assert len(good.lines) == 1

    with pytest.raises(OSError, match="disk gone"):
        tee.sync()


def test_build_encoder_wraps_when_filtering():
    """The sensitive filter wraps any encoding in a RedactingEncoder."""

    plain = build_encoder(TargetSettings(name="app"))
    filtered = build_encoder(
        TargetSettings(
            name="audit",
            encoding="console",
            sensitive_filter=True,
            sensitive_fields=("password",),
        )
    )

    assert isinstance(plain, JSONEncoder)
    assert isinstance(filtered, RedactingEncoder)
    assert isinstance(filtered.wrapped, ConsoleEncoder)
    assert "PASSWORD" in filtered.fields


def test_build_encoder_rejects_unknown_encoding():
    """Unknown encodings raise ConfigurationError."""

    with pytest.raises(ConfigurationError):
        build_encoder(TargetSettings(name="app", encoding="xml"))


def test_build_sink_per_type(tmp_path):
    """Each target type maps to its sink."""

    assert isinstance(build_sink(TargetSettings(name="a")), StdoutSink)
    assert isinstance(build_sink(TargetSettings(name="b", type="memory")), InMemorySink)

    sink = build_sink(TargetSettings(name="c", type="file", path=str(tmp_path / "c.log")))
    try:
        assert isinstance(sink, RotatingFileSink)
    finally:
        sink.close()


def test_build_sink_rejects_bad_targets():
    """File targets need a path and unknown types are refused."""

    with pytest.raises(ConfigurationError, match="path"):
        build_sink(TargetSettings(name="c", type="file"))

    with pytest.raises(ConfigurationError, match="unknown type"):
        build_sink(TargetSettings(name="d", type="syslog"))


def test_build_core_masks_console_encoded_targets(entry):
    """Console-encoded targets mask sensitive fields too."""

    core = build_core(
        TargetSettings(
            name="audit",
            type="memory",
            encoding="console",
            level="info",
            sensitive_filter=True,
            sensitive_fields=("password",),
        )
    )

    core.write(entry, [Field("password", "hunter2")])

    line = core.sink.lines[0]
    assert "hunter2" not in line
    assert '"password":"***"' in line
