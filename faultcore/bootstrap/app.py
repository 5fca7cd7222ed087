"""
bootstrap/app.py - One-shot core wiring

Builds the process-wide event logger, strategy registry, recovery
dispatcher and telemetry reporter from one configuration, then installs
the global fault hooks.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import asyncio
import logging
import time

from .config import FaultcoreConfig, load_config, set_config

from faultcore.errors import interception
from faultcore.errors.recovery import RecoveryDispatcher, get_recovery_dispatcher
from faultcore.errors.strategies import StrategyRegistry, get_strategy_registry
from faultcore.eventlog.logger import EventLogger, get_event_logger
from faultcore.telemetry.service import TelemetryReporter, set_telemetry_reporter

logger = logging.getLogger("bootstrap.app")


class CoreState(Enum):
    """Core lifecycle states."""
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class CoreContext:
    """Handles to the wired core components."""
    config: FaultcoreConfig = None
    event_logger: EventLogger = None
    registry: StrategyRegistry = None
    dispatcher: RecoveryDispatcher = None
    reporter: TelemetryReporter = None
    state: CoreState = CoreState.CREATED
    start_time: float = 0
    hooks_installed: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_uptime(self) -> float:
        """Get core uptime in seconds."""
        if self.start_time == 0:
            return 0
        return time.time() - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "uptime_seconds": self.get_uptime(),
            "environment": self.config.environment if self.config else None,
            "strategies": [s.name for s in self.registry.strategies] if self.registry else [],
            "reporting": self.reporter.config.effective_service.value if self.reporter else None,
            "reporting_ready": bool(self.reporter and self.reporter.backend is not None),
            "hooks_installed": self.hooks_installed,
        }


_context: Optional[CoreContext] = None


def initialize_core(
    config: Optional[FaultcoreConfig] = None,
    config_file: Optional[str] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    install_hooks: bool = True,
) -> CoreContext:
    """
    Wire the core from one configuration.

    Call once from the host entry point. A second call reconfigures the
    existing logger and rebuilds the reporter; hooks are only installed
    once.

    Args:
        config: Configuration to use; loaded from file or environment if None
        config_file: Optional JSON config path used when ``config`` is None
        loop: Event loop whose unhandled task failures should be logged
        install_hooks: Set False to skip the global exception hooks

    Returns:
        CoreContext with the wired components
    """
    global _context

    context = CoreContext()
    try:
        if config is None:
            config = load_config(config_file)
        else:
            set_config(config)
        context.config = config

        # Logger first: everything below logs through it
        context.event_logger = get_event_logger(config.logger_config())
        context.event_logger.configure(config.logger_config())

        context.registry = get_strategy_registry()
        context.dispatcher = get_recovery_dispatcher()

        previous = _context.reporter if _context is not None else None
        if previous is not None:
            previous.close()
        reporter = TelemetryReporter(config.telemetry)
        reporter.initialize()
        set_telemetry_reporter(reporter)
        context.reporter = reporter

        if install_hooks:
            interception.install(loop)
        context.hooks_installed = interception.is_installed()
    except Exception as e:
        logger.error(f"Core initialization failed: {e}")
        context.state = CoreState.FAILED
        raise

    context.state = CoreState.RUNNING
    context.start_time = time.time()
    _context = context

    context.event_logger.info(
        "Fault handling core initialized",
        metadata={
            "environment": config.environment,
            "level": context.event_logger.config.level.name,
            "reporting": reporter.config.effective_service.value,
        },
    )
    return context


def get_core_context() -> Optional[CoreContext]:
    return _context


def shutdown_core(timeout: Optional[float] = 2.0) -> None:
    """Flush pending reports and remove the global hooks."""
    global _context

    interception.uninstall()
    if _context is None:
        return

    reporter = _context.reporter
    if reporter is not None:
        try:
            reporter.flush(timeout)
            reporter.close()
        except Exception as e:
            logger.warning(f"Telemetry shutdown failed: {e}")

    _context.state = CoreState.STOPPED
    _context.hooks_installed = False
    logger.info("Fault handling core stopped")
    _context = None


def reset_core() -> None:
    """Forget the wired context without flushing (tests)."""
    global _context
    _context = None


__all__: List[str] = [
    "CoreState",
    "CoreContext",
    "initialize_core",
    "get_core_context",
    "shutdown_core",
    "reset_core",
]
