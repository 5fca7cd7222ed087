"""
errors/statistics.py - Error statistics over the log history

Recomputed from the EventLogger history on every call. Nothing is cached.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from faultcore.eventlog.entry import LogEntry
from faultcore.eventlog.levels import Severity

if TYPE_CHECKING:
    from faultcore.eventlog.logger import EventLogger


RECENT_ERROR_LIMIT = 10


@dataclass
class ErrorStatistics:
    """Snapshot of ERROR and FATAL entries in the log history."""

    total_errors: int = 0
    errors_by_level: Dict[str, int] = field(default_factory=dict)
    recent_errors: List[LogEntry] = field(default_factory=list)

    @property
    def critical_errors(self) -> int:
        return self.errors_by_level.get(Severity.FATAL.name, 0)

    @property
    def summary(self) -> str:
        if self.critical_errors:
            return f"{self.critical_errors} fatal error(s) require immediate attention"
        if self.total_errors:
            return f"{self.total_errors} error(s) logged"
        return "No errors logged"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_errors": self.total_errors,
            "errors_by_level": self.errors_by_level,
            "critical_errors": self.critical_errors,
            "summary": self.summary,
            "recent_errors": [e.to_dict() for e in self.recent_errors],
        }


def compute_error_statistics(entries: List[LogEntry]) -> ErrorStatistics:
    errors = [e for e in entries if e.level <= Severity.ERROR]

    stats = ErrorStatistics(total_errors=len(errors))
    for severity in (Severity.FATAL, Severity.ERROR):
        count = sum(1 for e in errors if e.level == severity)
        if count > 0:
            stats.errors_by_level[severity.name] = count

    stats.recent_errors = errors[-RECENT_ERROR_LIMIT:]
    return stats


def get_error_statistics(logger: Optional["EventLogger"] = None) -> ErrorStatistics:
    """Statistics for ``logger``, defaulting to the process-wide EventLogger."""
    if logger is None:
        from faultcore.eventlog.logger import get_event_logger
        logger = get_event_logger()
    return compute_error_statistics(logger.get_logs())
