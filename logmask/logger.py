"""Structured logging facade with named output targets."""

from __future__ import annotations

import datetime as _dt
import logging
import os
import sys
from threading import RLock
from typing import Any, Dict, List, Optional

from .config import LoggingSettings, TargetSettings, get_settings
from .core import Core, CoreLike, TeeCore, build_core
from .encoders import Entry, Field, JSONEncoder
from .levels import Level, parse_level
from .masking import set_mask
from .metrics import record_sink_error
from .sinks import StdoutSink


LOGGER = logging.getLogger("logmask.logger")


def _caller(stacklevel: int) -> str | None:
    try:
        frame = sys._getframe(stacklevel + 1)
    except ValueError:
        return None

    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


class Logger:
    """Structured logger writing through one core."""

    def __init__(self, core: CoreLike, name: str = "", *, add_caller: bool = True) -> None:
        self._core = core # The core receiving records
        self._name = name # The logger name written with each record
        self._add_caller = add_caller # Whether to record file:line of the call site

    @property
    def name(self) -> str:
        return self._name

    @property
    def core(self) -> CoreLike:
        return self._core

    def named(self, name: str) -> "Logger":
        """Return a logger sharing this core under a dotted child name."""

        full = f"{self._name}.{name}" if self._name else name
        return Logger(self._core, full, add_caller=self._add_caller)

    def debug(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log a debug message."""

        self._log(Level.DEBUG, message, fields, kwargs)

    def info(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log an info message."""

        self._log(Level.INFO, message, fields, kwargs)

    def warn(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log a warning message."""

        self._log(Level.WARN, message, fields, kwargs)

    warning = warn

    def error(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log an error message."""

        self._log(Level.ERROR, message, fields, kwargs)

    def panic(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log a panic message, then raise ``RuntimeError``."""

        self._log(Level.PANIC, message, fields, kwargs)
        raise RuntimeError(message)

    def fatal(self, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log a fatal message, flush, then exit the process."""

        self._log(Level.FATAL, message, fields, kwargs)
        self.sync()
        raise SystemExit(1)

    def log(self, level: Level | str, message: str, /, *fields: Field, **kwargs: Any) -> None:
        """Log a message at ``level``."""

        self._log(parse_level(level), message, fields, kwargs)

    def sync(self) -> None:
        """Flush the underlying sinks, reporting failures instead of raising."""

        try:
            self._core.sync()
        except OSError:
            LOGGER.exception("Failed to sync logger %s", self._name or "root")
            record_sink_error()

    def _log(
        self,
        level: Level,
        message: str,
        fields: tuple[Field, ...],
        kwargs: Dict[str, Any],
        *,
        stacklevel: int = 2,
    ) -> None:
        """Build a record and write it through the core."""

        if not self._core.enabled(level):
            return

        entry = Entry(
            level=level,
            message=message,
            time=_dt.datetime.now(tz=_dt.timezone.utc),
            logger_name=self._name,
            caller=_caller(stacklevel) if self._add_caller else None,
        )

        record_fields: List[Field] = list(fields)
        record_fields.extend(Field(key, value) for key, value in kwargs.items())

        try:
            self._core.write(entry, record_fields)
        except OSError:
            LOGGER.exception("Failed to write log record for %s", self._name or "root")
            record_sink_error()


class LoggerManager:
    """Owns the root logger and the registry of named target loggers."""

    def __init__(self) -> None:
        """Initialize the logger manager."""

        self._lock = RLock() # The lock for the logger manager
        self._initialized = False # Whether init() already ran
        self._root: Logger | None = None # Tee over every target
        self._targets: Dict[str, Logger] = {} # Loggers by target name

    def init(self, settings: LoggingSettings) -> bool:
        """Build cores for every target; only the first call has any effect."""

        with self._lock:
            if self._initialized:
                return False

            set_mask(settings.mask)

            cores: List[Core] = []
            targets: Dict[str, Logger] = {}

            for target in settings.targets:
                core = build_core(target)
                cores.append(core)
                targets[target.name] = Logger(core, target.name)

            if cores:
                root_core: CoreLike = TeeCore(cores)
            else:
                root_core = Core(JSONEncoder(), StdoutSink(), parse_level(settings.level))

            self._targets = targets
            self._root = Logger(root_core)
            self._initialized = True

            return True

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def root(self) -> Logger:
        root = self._root

        if root is None:
            self.init(get_settings())
            root = self._root

        assert root is not None

        return root

    def add_target(self, target: TargetSettings) -> Logger:
        """Register (or replace) the logger for ``target``."""

        logger = Logger(build_core(target), target.name)

        with self._lock:
            self._targets[target.name] = logger

        return logger

    def target(self, name: str) -> Optional[Logger]:
        with self._lock:
            return self._targets.get(name)

    def targets(self) -> List[str]:
        with self._lock:
            return list(self._targets)

    def sync(self) -> None:
        """Flush the root logger and every target logger."""

        with self._lock:
            loggers = list(self._targets.values())
            root = self._root

        if root is not None:
            root.sync()

        for logger in loggers:
            logger.sync()

    def reset(self) -> None:
        """Reset the logger manager."""

        with self._lock:
            self._initialized = False
            self._root = None
            self._targets = {}


_MANAGER = LoggerManager()


def init(settings: LoggingSettings | None = None) -> bool:
    """Initialize the process-wide loggers once; later calls are ignored."""

    return _MANAGER.init(settings or get_settings())


def get_logger(name: str | None = None) -> Logger:
    """Return the root logger, or a named child of it."""

    root = _MANAGER.root
    return root.named(name) if name else root


def add_target_logger(target: TargetSettings) -> Logger:
    """Register a named logger for ``target``."""

    return _MANAGER.add_target(target)


def get_target_logger(name: str) -> Optional[Logger]:
    return _MANAGER.target(name)


def log_to(target: str, level: Level | str, message: str, /, *fields: Field, **kwargs: Any) -> None:
    """Log through the named target logger; unknown targets are ignored."""

    _log_to(target, parse_level(level), message, fields, kwargs)


def _log_to(
    target: str,
    level: Level,
    message: str,
    fields: tuple[Field, ...],
    kwargs: Dict[str, Any],
) -> None:
    logger = _MANAGER.target(target)
    if logger is None:
        return

    logger._log(level, message, fields, kwargs, stacklevel=3)


def debug_to(target: str, message: str, /, *fields: Field, **kwargs: Any) -> None:
    _log_to(target, Level.DEBUG, message, fields, kwargs)


def info_to(target: str, message: str, /, *fields: Field, **kwargs: Any) -> None:
    _log_to(target, Level.INFO, message, fields, kwargs)


def warn_to(target: str, message: str, /, *fields: Field, **kwargs: Any) -> None:
    _log_to(target, Level.WARN, message, fields, kwargs)


def error_to(target: str, message: str, /, *fields: Field, **kwargs: Any) -> None:
    _log_to(target, Level.ERROR, message, fields, kwargs)


def sync() -> None:
    """Flush every logger."""

    _MANAGER.sync()


def reset_loggers() -> None:
    """Reset the logger manager."""

    _MANAGER.reset()
