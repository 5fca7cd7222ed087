"""
faultcore.eventlog - Structured event logging

Severity-leveled entries, bounded history, timers and scoped context.
"""

from .levels import Severity, should_log, level_for_environment
from .entry import LogEntry, format_timestamp
from .config import LoggerConfig, DEFAULT_MAX_LOGS
from .logger import EventLogger, get_event_logger, reset_event_logger
from .context import with_context
from .utilities import (
    log_api_call,
    log_api_error,
    log_user_action,
    log_auth_event,
    log_validation_error,
    log_security_event,
    log_data_fetch,
    log_cache_operation,
    log_form_submission,
    log_performance,
    log_error,
    log_state_change,
    create_timer,
)

__all__ = [
    "Severity",
    "should_log",
    "level_for_environment",
    "LogEntry",
    "format_timestamp",
    "LoggerConfig",
    "DEFAULT_MAX_LOGS",
    "EventLogger",
    "get_event_logger",
    "reset_event_logger",
    "with_context",
    "log_api_call",
    "log_api_error",
    "log_user_action",
    "log_auth_event",
    "log_validation_error",
    "log_security_event",
    "log_data_fetch",
    "log_cache_operation",
    "log_form_submission",
    "log_performance",
    "log_error",
    "log_state_change",
    "create_timer",
]
