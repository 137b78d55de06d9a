"""In-process metrics for the redaction runtime."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass
class RuntimeMetrics:
    """Runtime metrics for the redacting log library."""

    redacted_total: int = 0 # Values replaced by the mask token
    redaction_errors: int = 0 # Values that could not be masked
    encode_errors: int = 0 # Records that fell back to the error line
    records_written: int = 0 # Records handed to a sink
    sink_errors: int = 0 # Failed sink writes or syncs

    def as_dict(self) -> dict[str, int]:
        """Return the metrics as a dictionary."""

        return {
            "redacted_total": self.redacted_total,
            "redaction_errors": self.redaction_errors,
            "encode_errors": self.encode_errors,
            "records_written": self.records_written,
            "sink_errors": self.sink_errors,
        }


_LOCK = threading.RLock()
_METRICS = RuntimeMetrics()


def record_redaction(count: int, *, errors: int = 0) -> None:
    """Record aggregate redaction metrics."""

    if count <= 0 and errors <= 0:
        return

    with _LOCK:
        if count > 0:
            _METRICS.redacted_total += count
        if errors > 0:
            _METRICS.redaction_errors += errors


def record_encode_error() -> None:
    with _LOCK:
        _METRICS.encode_errors += 1


def record_write() -> None:
    with _LOCK:
        _METRICS.records_written += 1


def record_sink_error() -> None:
    with _LOCK:
        _METRICS.sink_errors += 1


def reset_metrics() -> None:
    """Reset the metrics."""

    with _LOCK:
        _METRICS.redacted_total = 0
        _METRICS.redaction_errors = 0
        _METRICS.encode_errors = 0
        _METRICS.records_written = 0
        _METRICS.sink_errors = 0


def get_metrics() -> RuntimeMetrics:
    """Get a snapshot of the metrics."""

    with _LOCK:
        return RuntimeMetrics(**_METRICS.as_dict())


__all__ = [
    "RuntimeMetrics",
    "get_metrics",
    "record_encode_error",
    "record_redaction",
    "record_sink_error",
    "record_write",
    "reset_metrics",
]
