"""
eventlog/levels.py - Log severity levels

Six totally ordered severities. Lower value means higher priority, so an
entry passes the threshold when ``level <= threshold``.
"""

from __future__ import annotations
from enum import IntEnum
from typing import Any, Dict, Optional
import logging


# stdlib has no TRACE level
TRACE_LEVEL_NUM = 5
logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")


class Severity(IntEnum):
    """Log severity, most important first."""
    FATAL = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5

    @property
    def stdlib_level(self) -> int:
        """Equivalent level number in the ``logging`` module."""
        return _STDLIB_LEVELS[self]

    @classmethod
    def parse(cls, value: Any, default: Optional["Severity"] = None) -> Optional["Severity"]:
        """
        Parse a severity from a name, alias or ordinal.

        Returns ``default`` for anything unrecognized.
        """
        if isinstance(value, Severity):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                return default
        if isinstance(value, str):
            name = value.strip().upper()
            name = _ALIASES.get(name, name)
            if name in cls.__members__:
                return cls[name]
        return default


_ALIASES: Dict[str, str] = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

_STDLIB_LEVELS: Dict[Severity, int] = {
    Severity.FATAL: logging.CRITICAL,
    Severity.ERROR: logging.ERROR,
    Severity.WARN: logging.WARNING,
    Severity.INFO: logging.INFO,
    Severity.DEBUG: logging.DEBUG,
    Severity.TRACE: TRACE_LEVEL_NUM,
}


def should_log(level: Severity, threshold: Severity) -> bool:
    """True if an entry at ``level`` passes the ``threshold``."""
    return level <= threshold


def console_method(level: Severity) -> str:
    """Name of the stdlib logger method used to mirror ``level``."""
    if level <= Severity.ERROR:
        return "error"
    if level == Severity.WARN:
        return "warning"
    return "info"


def level_for_environment(environment: str, debug: bool = False) -> Severity:
    """Minimum severity derived from the deployment environment."""
    env = (environment or "").strip().lower()
    if debug or env in ("development", "dev", "local"):
        return Severity.DEBUG
    if env == "staging":
        return Severity.INFO
    if env in ("production", "prod"):
        return Severity.WARN
    return Severity.INFO
