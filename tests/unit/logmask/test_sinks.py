"""Tests for output sinks."""

from __future__ import annotations

import gzip
import io
import os
import time

from logmask.sinks import InMemorySink, RotatingFileSink, StdoutSink

LINE = ("x" * 49 + "\n").encode("utf-8")


def test_stdout_sink_writes_to_given_stream():
    """An explicit stream receives the decoded line."""

    stream = io.StringIO()
    sink = StdoutSink(stream)

    sink.write(b'{"msg":"hi"}\n')
    sink.sync()

    assert stream.getvalue() == '{"msg":"hi"}\n'


def test_stdout_sink_follows_sys_stdout(capsys):
    """Without a stream the sink writes to the current stdout."""

    StdoutSink().write("héllo\n".encode("utf-8"))

    assert capsys.readouterr().out == "héllo\n"


def test_in_memory_sink_records_and_clear():
    """The in-memory sink parses stored lines and can be cleared."""

    sink = InMemorySink()

    sink.write(b'{"a":1}\n')
    sink.write(b'{"b":2}\n')

    assert sink.records == [{"a": 1}, {"b": 2}]

    sink.clear()
    assert sink.lines == []


def test_file_sink_appends_lines(tmp_path):
    """Lines are appended and parent directories created."""

    path = tmp_path / "logs" / "app.log"
    sink = RotatingFileSink(str(path))
    try:
        sink.write(LINE)
        sink.write(LINE)
        sink.sync()
    finally:
        sink.close()

    assert path.read_bytes() == LINE * 2
    assert sink.backups() == []


def test_file_sink_rotates_by_size(tmp_path):
    """Exceeding the size limit moves the file to a timestamped backup."""

    path = tmp_path / "app.log"
    sink = RotatingFileSink(str(path), max_bytes=64)
    try:
        for _ in range(3):
            sink.write(LINE)
            time.sleep(0.002)
        sink.sync()

        backups = sink.backups()
    finally:
        sink.close()

    assert len(backups) == 2
    assert path.read_bytes() == LINE
    for backup in backups:
        assert os.path.basename(backup).startswith("app-")
        assert backup.endswith(".log")


def test_file_sink_keeps_max_backups(tmp_path):
    """Only the newest backups survive when a count is set."""

    path = tmp_path / "app.log"
    sink = RotatingFileSink(str(path), max_bytes=64, max_backups=1)
    try:
        for _ in range(4):
            sink.write(LINE)
            time.sleep(0.002)

        backups = sink.backups()
    finally:
        sink.close()

    assert len(backups) == 1


def test_file_sink_compresses_backups(tmp_path):
    """Rotated files are gzipped when compression is on."""

    path = tmp_path / "app.log"
    sink = RotatingFileSink(str(path), max_bytes=64, compress=True)
    try:
        sink.write(LINE)
        sink.write(LINE)

        (backup,) = sink.backups()
    finally:
        sink.close()

    assert backup.endswith(".log.gz")
    with gzip.open(backup, "rb") as handle:
        assert handle.read() == LINE


def test_file_sink_prunes_old_backups(tmp_path):
    """Backups older than the age limit are removed."""

    path = tmp_path / "app.log"
    stale = tmp_path / "app-2000-01-01T00-00-00.000000.log"
    stale.write_bytes(LINE)
    ancient = time.time() - 30 * 86400
    os.utime(stale, (ancient, ancient))

    sink = RotatingFileSink(str(path), max_bytes=64, max_age_days=7)
    try:
        sink.write(LINE)
        sink.write(LINE)

        backups = sink.backups()
    finally:
        sink.close()

    assert str(stale) not in backups
    assert not stale.exists()
    assert len(backups) == 1


def test_file_sink_ignores_unrelated_files(tmp_path):
    """Files sharing the log's prefix without a rotation timestamp are left alone."""

    path = tmp_path / "app.log"
    neighbour = tmp_path / "app-server.log"
    neighbour.write_bytes(LINE)
    ancient = time.time() - 30 * 86400
    os.utime(neighbour, (ancient, ancient))

    sink = RotatingFileSink(str(path), max_bytes=64, max_backups=1, max_age_days=7)
    try:
        for _ in range(3):
            sink.write(LINE)
            time.sleep(0.002)

        backups = sink.backups()
    finally:
        sink.close()

    assert neighbour.read_bytes() == LINE
    assert str(neighbour) not in backups
    assert len(backups) == 1
    assert os.path.basename(backups[0]).startswith("app-20")
