"""
eventlog/config.py - Event logger runtime configuration
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Optional

from .levels import Severity, level_for_environment


DEFAULT_MAX_LOGS = 500


@dataclass
class LoggerConfig:
    """Settings the EventLogger reads on every call."""

    environment: str = "development"
    level: Severity = Severity.DEBUG

    # Mirror entries to the stdlib console logger
    console: bool = True

    # Keep entries in the bounded in-memory history
    persistence: bool = True
    max_logs: int = DEFAULT_MAX_LOGS

    # start_timer / end_timer are no-ops when disabled
    performance_tracking: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() in ("development", "dev", "local")

    @classmethod
    def for_environment(
        cls,
        environment: str,
        debug: bool = False,
        level: Optional[Any] = None,
        **overrides: Any,
    ) -> "LoggerConfig":
        """
        Build a config with the level derived from the environment.

        An explicit ``level`` wins over the derived one. Performance
        tracking defaults to on only for debug builds.
        """
        derived = level_for_environment(environment, debug)
        resolved = Severity.parse(level, derived) if level is not None else derived
        tracking = overrides.pop(
            "performance_tracking",
            resolved == Severity.DEBUG or resolved == Severity.TRACE,
        )
        config = cls(
            environment=environment,
            level=resolved,
            performance_tracking=tracking,
        )
        return replace(config, **overrides) if overrides else config
