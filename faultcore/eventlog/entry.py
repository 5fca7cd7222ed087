"""
eventlog/entry.py - Structured log entry
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .levels import Severity


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _freeze(data: Optional[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    if not data:
        return None
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class LogEntry:
    """
    Immutable record of one log call.

    ``context`` and ``metadata`` are read-only snapshots taken when the
    entry is created, so later ``set_context`` calls never leak into it.
    """

    timestamp: str
    level: Severity
    message: str
    context: Optional[Mapping[str, Any]] = None
    source: Optional[str] = None
    error: Any = None
    stack: Optional[str] = None
    metadata: Optional[Mapping[str, Any]] = None

    @classmethod
    def create(
        cls,
        level: Severity,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
        source: Optional[str] = None,
        error: Any = None,
        stack: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> "LogEntry":
        return cls(
            timestamp=format_timestamp(),
            level=level,
            message=message,
            context=_freeze(context),
            source=source,
            error=error,
            stack=stack,
            metadata=_freeze(metadata),
        )

    @property
    def level_name(self) -> str:
        return self.level.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level.name,
            "message": self.message,
        }
        if self.context is not None:
            data["context"] = dict(self.context)
        if self.source is not None:
            data["source"] = self.source
        if self.error is not None:
            data["error"] = _error_to_dict(self.error)
        if self.stack is not None:
            data["stack"] = self.stack
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data


def _error_to_dict(error: Any) -> Dict[str, Any]:
    if isinstance(error, BaseException):
        return {"name": type(error).__name__, "message": str(error)}
    return {"name": type(error).__name__, "message": repr(error)}
