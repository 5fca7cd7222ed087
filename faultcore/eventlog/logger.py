"""
eventlog/logger.py - Structured event logger

Severity-leveled logging with a bounded in-memory history, optional
console mirroring through the stdlib ``logging`` module, performance
timers and forwarding of production errors to the telemetry reporter.

INVARIANT: no public method raises. Logging must never break the caller.
"""

from __future__ import annotations
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Mapping, Optional, Union
import json
import logging
import os
import threading
import time
import traceback

from .config import LoggerConfig
from .entry import LogEntry
from .levels import Severity, console_method, should_log

logger = logging.getLogger("eventlog.logger")
console_logger = logging.getLogger("eventlog.console")

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class EventLogger:
    """
    Core logger for the fault-handling stack.

    Usage:
        log = get_event_logger()
        log.set_context({"user_id": "u-1"})
        log.error("Failed to save user", error=exc, metadata={"user_id": "u-1"})
    """

    def __init__(
        self,
        config: Optional[LoggerConfig] = None,
        console: Optional[logging.Logger] = None,
    ):
        self.config = config or LoggerConfig()
        self._console = console or console_logger
        self._logs: Deque[LogEntry] = deque(maxlen=max(0, self.config.max_logs))
        self._context: Dict[str, Any] = {}
        self._timers: Dict[str, float] = {}
        self._forwarding = False

    def configure(self, config: LoggerConfig) -> None:
        """Swap the configuration, keeping the newest entries that still fit."""
        self.config = config
        self._logs = deque(self._logs, maxlen=max(0, config.max_logs))

    # =========================================================================
    # Context
    # =========================================================================

    def set_context(self, context: Mapping[str, Any]) -> None:
        """Shallow-merge ``context`` into the current context."""
        try:
            self._context = {**self._context, **dict(context)}
        except Exception as e:
            logger.warning(f"Ignoring invalid log context: {e}")

    def clear_context(self) -> None:
        self._context = {}

    def get_context(self) -> Dict[str, Any]:
        return dict(self._context)

    def replace_context(self, context: Mapping[str, Any]) -> None:
        """Replace the whole context. Used to restore a saved snapshot."""
        self._context = dict(context)

    # =========================================================================
    # Level methods
    # =========================================================================

    def fatal(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        """System is unusable."""
        self.log(Severity.FATAL, message, error, metadata)

    def error(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        """Operation failed, immediate attention needed."""
        self.log(Severity.ERROR, message, error, metadata)

    def warn(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        """Potentially harmful situation."""
        self.log(Severity.WARN, message, error, metadata)

    warning = warn

    def info(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.INFO, message, error, metadata)

    def debug(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.DEBUG, message, error, metadata)

    def trace(self, message: str, error: Any = None, metadata: Optional[Mapping[str, Any]] = None) -> None:
        self.log(Severity.TRACE, message, error, metadata)

    def is_level_enabled(self, level: Union[Severity, str]) -> bool:
        parsed = Severity.parse(level)
        return parsed is not None and should_log(parsed, self.config.level)

    def log(
        self,
        level: Union[Severity, str],
        message: str,
        error: Any = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Record one entry at ``level``. Unknown levels are dropped."""
        try:
            parsed = Severity.parse(level)
            if parsed is None:
                logger.warning(f"Ignoring entry with unknown log level: {level!r}")
                return
            level = parsed
            if not should_log(level, self.config.level):
                return

            entry = self._build_entry(level, message, error, metadata)

            if self.config.persistence:
                self._logs.append(entry)

            if self.config.console:
                self._output_to_console(entry)

            if self.config.is_production and level <= Severity.ERROR:
                self._forward(entry)
        except Exception as e:
            logger.warning(f"Event logger dropped an entry: {e}")

    def _build_entry(
        self,
        level: Severity,
        message: Any,
        error: Any,
        metadata: Optional[Mapping[str, Any]],
    ) -> LogEntry:
        if metadata is not None and not isinstance(metadata, Mapping):
            metadata = {"value": metadata}

        return LogEntry.create(
            level=level,
            message=message if isinstance(message, str) else str(message),
            context=self._context or None,
            source=_source_location() if self.config.is_development else None,
            error=error,
            stack=_format_stack(error),
            metadata=metadata or None,
        )

    def _output_to_console(self, entry: LogEntry) -> None:
        """Write one line, picking the stdlib method by severity."""
        line = f"[{entry.level.name}] {entry.timestamp} {entry.message}"
        if entry.error is not None:
            line = f"{line} | Error: {_error_message(entry.error)}"

        extra = {
            "log_level": entry.level.name,
            "log_context": dict(entry.context) if entry.context else None,
            "log_metadata": dict(entry.metadata) if entry.metadata else None,
            "log_source": entry.source,
        }

        exc_info = None
        if self.config.is_development and isinstance(entry.error, BaseException):
            exc_info = (type(entry.error), entry.error, entry.error.__traceback__)

        method = getattr(self._console, console_method(entry.level))
        method(line, extra=extra, exc_info=exc_info)

    def _forward(self, entry: LogEntry) -> None:
        """Hand an ERROR/FATAL entry to the telemetry reporter."""
        # The reporter may log on failure; never re-enter from there.
        if self._forwarding:
            return
        self._forwarding = True
        try:
            from faultcore.telemetry.service import get_telemetry_reporter
            get_telemetry_reporter().report_entry(entry)
        except Exception as e:
            logger.warning(f"Could not forward entry to telemetry: {e}")
        finally:
            self._forwarding = False

    # =========================================================================
    # Timers
    # =========================================================================

    def start_timer(self, label: str) -> None:
        """Start a named timer. No-op when performance tracking is off."""
        if not self.config.performance_tracking:
            return
        try:
            self._timers[label] = time.perf_counter()
        except TypeError as e:
            logger.warning(f"Cannot start timer {label!r}: {e}")

    def end_timer(
        self,
        label: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Optional[float]:
        """
        Stop a named timer and log its duration at DEBUG.

        Returns:
            Elapsed milliseconds, or None if tracking is off or the
            timer was never started.
        """
        if not self.config.performance_tracking:
            return None

        try:
            start = self._timers.pop(label, None)
        except TypeError as e:
            logger.warning(f"Cannot end timer {label!r}: {e}")
            return None
        if start is None:
            self.warn(f'Timer "{label}" not found')
            return None

        duration = (time.perf_counter() - start) * 1000.0
        details = dict(metadata) if isinstance(metadata, Mapping) else {}
        details["duration"] = f"{duration:.2f}ms"
        self.debug(f"Timer [{label}]: {duration:.2f}ms", metadata=details)
        return duration

    @property
    def active_timers(self) -> List[str]:
        return list(self._timers)

    # =========================================================================
    # History
    # =========================================================================

    def get_logs(self) -> List[LogEntry]:
        """Copy of the stored entries, oldest first."""
        return list(self._logs)

    def clear_logs(self) -> None:
        self._logs.clear()

    def export_logs(self) -> str:
        """Stored entries as a JSON array."""
        try:
            return json.dumps([e.to_dict() for e in self._logs], indent=2, default=str)
        except Exception as e:
            logger.warning(f"Log export failed: {e}")
            return "[]"

    def export_logs_to(self, path: Union[str, Path]) -> Optional[Path]:
        """Write ``export_logs()`` to ``path``. Returns None on failure."""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.export_logs(), encoding="utf-8")
            return target
        except OSError as e:
            logger.warning(f"Could not write log export to {target}: {e}")
            return None

    @property
    def log_count(self) -> int:
        return len(self._logs)


def _format_stack(error: Any) -> Optional[str]:
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return None


def _error_message(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return repr(error)


def _source_location() -> Optional[str]:
    """First caller frame outside this package, as ``file:line``."""
    for frame in reversed(traceback.extract_stack(limit=16)[:-1]):
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR):
            return f"{os.path.basename(frame.filename)}:{frame.lineno}"
    return None


# =============================================================================
# Singleton
# =============================================================================

_instance: Optional[EventLogger] = None
_instance_lock = threading.Lock()


def _default_config() -> LoggerConfig:
    from faultcore.bootstrap.config import get_config
    return get_config().logger_config()


def get_event_logger(config: Optional[LoggerConfig] = None) -> EventLogger:
    """
    Get the process-wide EventLogger, creating it on first use.

    ``config`` only applies when this call creates the instance.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                try:
                    resolved = config or _default_config()
                except Exception as e:
                    logger.warning(f"Falling back to default logger config: {e}")
                    resolved = LoggerConfig()
                _instance = EventLogger(resolved)
    return _instance


def reset_event_logger() -> None:
    """Drop the singleton (tests)."""
    global _instance
    with _instance_lock:
        _instance = None
