"""
faultcore - Logging and error-handling core

    from faultcore import get_event_logger, handle_error, initialize_core

    initialize_core()
    log = get_event_logger()
    try:
        save_user(user)
    except Exception as exc:
        decision = handle_error(exc)
"""

__version__ = "1.0.0"

from .eventlog import (
    Severity,
    LogEntry,
    LoggerConfig,
    EventLogger,
    get_event_logger,
    with_context,
    create_timer,
)

from .errors import (
    AppFault,
    ApiFault,
    ValidationFault,
    NetworkFault,
    AuthFault,
    PermissionFault,
    NotFoundFault,
    RateLimitFault,
    RecoveryAction,
    RecoveryDecision,
    Strategy,
    get_strategy_registry,
    get_recovery_dispatcher,
    handle_error,
    get_error_statistics,
)

from .telemetry import (
    TelemetryConfig,
    get_telemetry_reporter,
    report_error,
)

from .bootstrap import (
    FaultcoreConfig,
    get_config,
    initialize_core,
    shutdown_core,
    setup_logging,
)

__all__ = [
    "__version__",
    "Severity",
    "LogEntry",
    "LoggerConfig",
    "EventLogger",
    "get_event_logger",
    "with_context",
    "create_timer",
    "AppFault",
    "ApiFault",
    "ValidationFault",
    "NetworkFault",
    "AuthFault",
    "PermissionFault",
    "NotFoundFault",
    "RateLimitFault",
    "RecoveryAction",
    "RecoveryDecision",
    "Strategy",
    "get_strategy_registry",
    "get_recovery_dispatcher",
    "handle_error",
    "get_error_statistics",
    "TelemetryConfig",
    "get_telemetry_reporter",
    "report_error",
    "FaultcoreConfig",
    "get_config",
    "initialize_core",
    "shutdown_core",
    "setup_logging",
]
