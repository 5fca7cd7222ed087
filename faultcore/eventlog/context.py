"""
eventlog/context.py - Scoped log context
"""

from __future__ import annotations
from contextlib import ContextDecorator
from typing import Any, Dict, List, Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .logger import EventLogger


class with_context(ContextDecorator):
    """
    Merge ``patch`` into the logger context for the duration of a block.

    The previous context is restored on every exit path, exceptions
    included. Works as a decorator too:

        @with_context({"component": "users"})
        def load_users(): ...
    """

    def __init__(self, patch: Mapping[str, Any], logger: Optional["EventLogger"] = None):
        self.patch = dict(patch)
        self._logger = logger
        # Stack so one instance can decorate a recursive function
        self._saved: List[Tuple["EventLogger", Dict[str, Any]]] = []

    def _resolve_logger(self) -> "EventLogger":
        if self._logger is not None:
            return self._logger
        from .logger import get_event_logger
        return get_event_logger()

    def __enter__(self) -> "EventLogger":
        log = self._resolve_logger()
        self._saved.append((log, log.get_context()))
        log.set_context(self.patch)
        return log

    def __exit__(self, exc_type, exc, tb) -> bool:
        log, saved = self._saved.pop()
        log.replace_context(saved)
        return False
