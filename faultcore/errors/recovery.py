"""
errors/recovery.py - Fault recovery dispatcher

Routes any fault value to a recovery policy and returns a
RecoveryDecision. Typed faults follow the built-in policy table. Anything
else goes through the strategy registry, then a generic fallback.
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING
import logging
import threading

from .decision import RecoveryAction, RecoveryDecision, decision_for_status
from .messages import ERROR_MESSAGES, lookup_error_message
from .strategies import StrategyRegistry, get_strategy_registry, validation_summary
from .taxonomy import (
    ApiFault,
    AppFault,
    AuthAction,
    AuthFault,
    NetworkFault,
    NotFoundFault,
    PermissionFault,
    RateLimitFault,
    ValidationFault,
    extract_details,
    extract_message,
)
from faultcore.eventlog.context import with_context

if TYPE_CHECKING:
    from faultcore.eventlog.logger import EventLogger


logger = logging.getLogger("errors.recovery")

CRITICAL_FAILURE_MESSAGE = "A critical error occurred. Please reload and try again."
GENERIC_FAILURE_MESSAGE = "An unexpected error occurred. Please try again."


def user_message_for(fault: Any) -> str:
    """User-facing message for a fault, preferring catalog codes."""
    if isinstance(fault, ValidationFault):
        return validation_summary(len(fault.field_errors))

    if isinstance(fault, NetworkFault):
        return "Network error. Please check your connection and try again."

    if isinstance(fault, AuthFault):
        if fault.auth_action == AuthAction.LOGIN:
            return "Invalid credentials. Please try again."
        if fault.auth_action == AuthAction.REFRESH:
            return "Your session has expired. Please log in again."
        return "Authentication failed. Please try again."

    if isinstance(fault, PermissionFault):
        return "You do not have permission to perform this action."

    if isinstance(fault, NotFoundFault):
        return f"The requested {fault.resource_type} was not found."

    if isinstance(fault, RateLimitFault):
        return "Too many requests. Please wait a moment and try again."

    if isinstance(fault, ApiFault):
        body_code = (fault.response_data or {}).get("code")
        catalog = lookup_error_message(body_code)
        if catalog:
            return catalog
        if fault.response_status >= 500:
            return "Server error. Please try again later."
        if fault.response_status == 400:
            return "Invalid request. Please check your input."
        if fault.response_status == 401:
            return ERROR_MESSAGES["AUTH_013"]
        return "Request failed. Please try again."

    if isinstance(fault, AppFault):
        catalog = lookup_error_message(fault.code)
        if catalog:
            return catalog
        if fault.is_user_facing:
            return fault.message

    return GENERIC_FAILURE_MESSAGE


def _error_type(fault: Any) -> str:
    return type(fault).__name__


class RecoveryDispatcher:
    """
    Decides how to recover from a fault.

    Usage:
        decision = get_recovery_dispatcher().resolve(exc)
        if decision.redirect_to_login:
            ...
    """

    def __init__(
        self,
        registry: Optional[StrategyRegistry] = None,
        logger: Optional["EventLogger"] = None,
    ):
        self._registry = registry
        self._logger = logger

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry if self._registry is not None else get_strategy_registry()

    @property
    def log(self) -> "EventLogger":
        if self._logger is not None:
            return self._logger
        from faultcore.eventlog.logger import get_event_logger
        return get_event_logger()

    def resolve(self, fault: Any) -> RecoveryDecision:
        """Classify ``fault``, log it and return a recovery decision. Never raises."""
        try:
            with with_context({"errorType": _error_type(fault)}, logger=self.log):
                return self._dispatch(fault)
        except Exception as handling_error:
            try:
                self.log.fatal(
                    "Error handler failed",
                    error=handling_error,
                    metadata={"original_error": extract_message(fault)},
                )
            except Exception as e:
                logger.error(f"Error handler failed and could not be logged: {e}")
            return RecoveryDecision(
                handled=False,
                user_message=CRITICAL_FAILURE_MESSAGE,
                action=RecoveryAction.RELOAD,
            )

    def _dispatch(self, fault: Any) -> RecoveryDecision:
        if isinstance(fault, ApiFault):
            return self._handle_api_fault(fault)
        if isinstance(fault, ValidationFault):
            return self._handle_validation_fault(fault)
        if isinstance(fault, NetworkFault):
            return self._handle_network_fault(fault)
        if isinstance(fault, AuthFault):
            return self._handle_auth_fault(fault)
        if isinstance(fault, AppFault):
            return self._handle_app_fault(fault)
        return self._handle_untyped(fault)

    # =========================================================================
    # Typed faults
    # =========================================================================

    def _handle_api_fault(self, fault: ApiFault) -> RecoveryDecision:
        metadata = {
            "method": fault.method,
            "url": fault.url,
            "status_code": fault.response_status,
            "duration": fault.duration,
            "response_data": fault.response_data,
        }
        if fault.response_status >= 500:
            self.log.error(f"API Error: {fault.method} {fault.url}", error=fault, metadata=metadata)
        else:
            self.log.warn(f"API Warning: {fault.method} {fault.url}", metadata=metadata)

        return decision_for_status(
            fault.response_status,
            user_message_for(fault),
            server_retry_delay_ms=2000,
        )

    def _handle_validation_fault(self, fault: ValidationFault) -> RecoveryDecision:
        self.log.warn(
            "Validation Error",
            metadata={"field_count": len(fault.field_errors), "errors": fault.field_errors},
        )
        return RecoveryDecision(
            handled=True,
            user_message=user_message_for(fault),
            context={"errors": fault.field_errors, "invalid_values": fault.invalid_values},
        )

    def _handle_network_fault(self, fault: NetworkFault) -> RecoveryDecision:
        self.log.error(
            "Network Error",
            error=fault,
            metadata={
                "retry_count": fault.retry_count,
                "max_retries": fault.max_retries,
                "should_retry": fault.should_retry,
            },
        )
        return RecoveryDecision(
            handled=True,
            user_message=user_message_for(fault),
            action=RecoveryAction.RETRY if fault.can_retry else RecoveryAction.CONTACT_SUPPORT,
            retry_delay_ms=fault.retry_delay,
        )

    def _handle_auth_fault(self, fault: AuthFault) -> RecoveryDecision:
        self.log.warn(
            "Authentication Error",
            error=fault,
            metadata={
                "auth_action": fault.auth_action.value,
                "should_redirect": fault.should_redirect_to_login,
            },
        )
        return RecoveryDecision(
            handled=True,
            user_message=user_message_for(fault),
            action=RecoveryAction.REDIRECT if fault.should_redirect_to_login else None,
            redirect_to_login=fault.should_redirect_to_login,
        )

    def _handle_app_fault(self, fault: AppFault) -> RecoveryDecision:
        metadata = {
            "code": fault.code,
            "status_code": fault.status_code,
            "context": fault.context,
            "metadata": fault.metadata,
            "user_facing": fault.is_user_facing,
        }
        if fault.status_code >= 500:
            self.log.error(f"Application Error: {fault.code}", error=fault, metadata=metadata)
        else:
            self.log.warn(f"Application Warning: {fault.code}", metadata=metadata)

        reset_time = fault.reset_time if isinstance(fault, RateLimitFault) else None
        return decision_for_status(
            fault.status_code,
            user_message_for(fault),
            server_retry_delay_ms=2000,
            rate_limit_delay_ms=reset_time,
        )

    # =========================================================================
    # Untyped values
    # =========================================================================

    def _handle_untyped(self, fault: Any) -> RecoveryDecision:
        details = extract_details(fault)
        self.log.error(
            "Unhandled Error",
            error=fault if isinstance(fault, BaseException) else None,
            metadata={"error_type": _error_type(fault), "message": details.message},
        )

        decision = self.registry.handle(fault)
        if decision is not None:
            return decision

        return RecoveryDecision(
            handled=True,
            user_message=GENERIC_FAILURE_MESSAGE,
            action=RecoveryAction.CONTACT_SUPPORT,
        )


# =============================================================================
# Module helpers
# =============================================================================

_dispatcher: Optional[RecoveryDispatcher] = None
_dispatcher_lock = threading.Lock()


def get_recovery_dispatcher() -> RecoveryDispatcher:
    global _dispatcher
    if _dispatcher is None:
        with _dispatcher_lock:
            if _dispatcher is None:
                _dispatcher = RecoveryDispatcher()
    return _dispatcher


def reset_recovery_dispatcher() -> None:
    global _dispatcher
    with _dispatcher_lock:
        _dispatcher = None


def handle_error(fault: Any) -> RecoveryDecision:
    """Resolve ``fault`` with the process-wide dispatcher."""
    return get_recovery_dispatcher().resolve(fault)


def report_error_to_service(fault: Any, context: Optional[Mapping[str, Any]] = None) -> None:
    """
    Send ``fault`` to the telemetry sink. Production only, fire-and-forget.
    """
    from faultcore.eventlog.logger import get_event_logger
    log = get_event_logger()
    if not log.config.is_production:
        return

    try:
        details = extract_details(fault)
        merged: Dict[str, Any] = {**details.context, **dict(context or {})}
        details.context = merged

        from faultcore.telemetry.service import get_telemetry_reporter
        get_telemetry_reporter().report_from_details(details, "error")
    except Exception as e:
        log.warn("Failed to report error to service", metadata={"error": extract_message(e)})
