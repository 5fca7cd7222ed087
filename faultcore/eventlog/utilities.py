"""
eventlog/utilities.py - Logging helpers for common patterns

Thin wrappers over the EventLogger singleton that attach consistent,
structured metadata for API calls, auth events, cache operations and
similar recurring events.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from .entry import format_timestamp
from .logger import get_event_logger


def _merge(base: Dict[str, Any], metadata: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if metadata:
        base.update(metadata)
    return base


def _ms(duration: float) -> str:
    return f"{duration:.2f}ms"


def log_api_call(
    method: str,
    url: str,
    duration: float,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """Log an API call with its timing at DEBUG."""
    get_event_logger().debug(
        f"API {method} {url}",
        metadata=_merge({"method": method, "url": url, "duration": _ms(duration)}, metadata),
    )


def log_api_error(
    method: str,
    url: str,
    status_code: int,
    error: Any,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    get_event_logger().error(
        f"API {method} {url} failed",
        error=error if isinstance(error, BaseException) else None,
        metadata=_merge({"method": method, "url": url, "status_code": status_code}, metadata),
    )


def log_user_action(action: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
    """Audit-trail entry for a user action."""
    get_event_logger().info(
        f"User Action: {action}",
        metadata=_merge({"action": action, "timestamp": format_timestamp()}, metadata),
    )


AUTH_EVENTS = ("login-success", "login-failure", "logout", "token-refresh", "session-expired")


def log_auth_event(event: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
    """Log one of ``AUTH_EVENTS`` at INFO."""
    get_event_logger().info(
        f"Auth: {event}",
        metadata=_merge({"event": event, "timestamp": format_timestamp()}, metadata),
    )


def log_validation_error(
    field: str,
    message: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    get_event_logger().warn(
        f"Validation error: {field}",
        metadata=_merge({"field": field, "message": message}, metadata),
    )


SECURITY_EVENTS = ("permission-denied", "rate-limit-exceeded", "suspicious-activity", "csrf-token-invalid")


def log_security_event(event: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
    """Log one of ``SECURITY_EVENTS`` at WARN."""
    get_event_logger().warn(
        f"Security: {event}",
        metadata=_merge({"event": event, "timestamp": format_timestamp()}, metadata),
    )


def log_data_fetch(
    resource: str,
    operation: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """``operation`` is one of list, detail, create, update, delete."""
    get_event_logger().debug(
        f"Data {operation}: {resource}",
        metadata=_merge({"resource": resource, "operation": operation}, metadata),
    )


def log_cache_operation(
    kind: str,
    key: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """``kind`` is one of hit, miss, invalidate, set."""
    get_event_logger().debug(
        f"Cache {kind}: {key}",
        metadata=_merge({"type": kind, "key": key}, metadata),
    )


def log_form_submission(
    form_name: str,
    success: bool,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    log = get_event_logger()
    details = _merge({"form_name": form_name, "success": success}, metadata)
    if success:
        log.info(f"Form {form_name}: success", metadata=details)
    else:
        log.warn(f"Form {form_name}: failed", metadata=details)


def log_performance(
    metric: str,
    duration: float,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    get_event_logger().debug(
        f"Performance: {metric} took {_ms(duration)}",
        metadata=_merge({"metric": metric, "duration": _ms(duration)}, metadata),
    )


def log_error(
    message: str,
    error: Any,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """
    Log an error with its type name attached.

    Non-exception values are not attached as ``error`` but still
    contribute their type name.
    """
    is_exception = isinstance(error, BaseException)
    get_event_logger().error(
        message,
        error=error if is_exception else None,
        metadata=_merge({"error_type": type(error).__name__}, metadata),
    )


def log_state_change(store: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
    """Debug builds only."""
    log = get_event_logger()
    if log.config.is_development:
        log.debug(f"State change: {store}", metadata=_merge({"store": store}, metadata))


class create_timer:
    """
    Named timer bound to the EventLogger.

        timer = create_timer("fetch-users")
        users = fetch_users()
        timer.end({"count": len(users)})

    Also usable as ``with create_timer("fetch-users"):``.
    """

    def __init__(self, label: str):
        self.label = label
        self.duration: Optional[float] = None
        get_event_logger().start_timer(label)

    def end(self, metadata: Optional[Mapping[str, Any]] = None) -> Optional[float]:
        self.duration = get_event_logger().end_timer(self.label, metadata)
        return self.duration

    def __enter__(self) -> "create_timer":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        # end() may already have been called inside the block
        if self.duration is None:
            self.end()
        return False
