"""Sink implementations receiving encoded record lines."""

from __future__ import annotations

import datetime as _dt
import gzip
import json
import logging
import os
import shutil
import sys
import threading
import time
from logging.handlers import RotatingFileHandler
from typing import Any, List, Protocol, TextIO


class Sink(Protocol):
    """A destination for encoded log lines."""

    def write(self, data: bytes) -> None:  # pragma: no cover - protocol
        ...

    def sync(self) -> None:  # pragma: no cover - protocol
        ...


class StdoutSink:
    """Write encoded lines to standard output."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream # None means the current sys.stdout
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def write(self, data: bytes) -> None:
        with self._lock:
            self.stream.write(data.decode("utf-8"))

    def sync(self) -> None:
        with self._lock:
            self.stream.flush()


class InMemorySink:
    """Keep encoded lines in memory, mostly for tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.lines: List[str] = []

    def write(self, data: bytes) -> None:
        with self._lock:
            self.lines.append(data.decode("utf-8"))

    def sync(self) -> None:
        return None

    @property
    def records(self) -> List[dict[str, Any]]:
        """Parse every stored line as a JSON object."""

        with self._lock:
            lines = list(self.lines)

        return [json.loads(line) for line in lines]

    def clear(self) -> None:
        with self._lock:
            self.lines.clear()


class _TimestampRotatingHandler(RotatingFileHandler):
    """Size based rotation renaming old files to ``<name>-<timestamp><ext>``."""

    _STAMP = "%Y-%m-%dT%H-%M-%S.%f"

    def __init__(
        self,
        filename: str,
        *,
        max_bytes: int,
        max_backups: int,
        max_age_days: int,
        compress: bool,
    ) -> None:
        super().__init__(
            filename,
            maxBytes=max_bytes,
            backupCount=max_backups,
            encoding="utf-8",
            delay=True,
        )
        self.terminator = ""
        self.max_age_days = max_age_days
        self.compress = compress
        self.setFormatter(logging.Formatter("%(message)s"))

    def handleError(self, record: logging.LogRecord) -> None:
        # Propagate write failures to the sink's caller.
        raise

    def backup_name(self, moment: _dt.datetime) -> str:
        root, ext = os.path.splitext(self.baseFilename)
        return f"{root}-{moment.strftime(self._STAMP)}{ext}"

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        if os.path.exists(self.baseFilename):
            backup = self.backup_name(_dt.datetime.now())
            os.replace(self.baseFilename, backup)
            if self.compress:
                _gzip_file(backup)

        self.prune()

        if not self.delay:
            self.stream = self._open()

    def backup_time(self, name: str) -> _dt.datetime | None:
        """Return the rotation time encoded in ``name``, or None for other files."""

        root, ext = os.path.splitext(os.path.basename(self.baseFilename))
        prefix = root + "-"

        if not name.startswith(prefix):
            return None

        stamp = name[len(prefix):]
        if stamp.endswith(".gz"):
            stamp = stamp[: -len(".gz")]
        if ext:
            if not stamp.endswith(ext):
                return None
            stamp = stamp[: -len(ext)]

        try:
            return _dt.datetime.strptime(stamp, self._STAMP)
        except ValueError:
            return None

    def backups(self) -> List[str]:
        """Return rotated files, newest first."""

        directory = os.path.dirname(self.baseFilename) or "."
        found = []

        for name in os.listdir(directory):
            moment = self.backup_time(name)
            if moment is not None:
                found.append((moment, os.path.join(directory, name)))

        found.sort(reverse=True)
        return [path for _moment, path in found]

    def prune(self) -> None:
        """Delete backups beyond ``backupCount`` or older than ``max_age_days``."""

        backups = self.backups()
        doomed = set()

        if self.backupCount > 0:
            doomed.update(backups[self.backupCount:])

        if self.max_age_days > 0:
            cutoff = time.time() - self.max_age_days * 86400
            doomed.update(path for path in backups if os.path.getmtime(path) < cutoff)

        for path in doomed:
            os.remove(path)


def _gzip_file(path: str) -> None:
    with open(path, "rb") as source, gzip.open(path + ".gz", "wb") as target:
        shutil.copyfileobj(source, target)
    os.remove(path)


class RotatingFileSink:
    """Append encoded lines to a file rotated by size.

    ``max_backups`` and ``max_age_days`` of zero keep every rotated file;
    ``compress`` gzips rotated files. ``max_bytes`` overrides ``max_size_mb``.
    """

    def __init__(
        self,
        path: str,
        *,
        max_size_mb: int = 100,
        max_backups: int = 0,
        max_age_days: int = 0,
        compress: bool = False,
        max_bytes: int | None = None,
    ) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._handler = _TimestampRotatingHandler(
            path,
            max_bytes=(
                max(0, max_bytes)
                if max_bytes is not None
                else max(0, max_size_mb) * 1024 * 1024
            ),
            max_backups=max(0, max_backups),
            max_age_days=max(0, max_age_days),
            compress=compress,
        )

    @property
    def path(self) -> str:
        return self._handler.baseFilename

    def backups(self) -> List[str]:
        return self._handler.backups()

    def write(self, data: bytes) -> None:
        record = logging.makeLogRecord({"msg": data.decode("utf-8")})
        self._handler.handle(record)

    def sync(self) -> None:
        self._handler.flush()

    def close(self) -> None:
        self._handler.close()


__all__ = ["Sink", "StdoutSink", "InMemorySink", "RotatingFileSink"]
