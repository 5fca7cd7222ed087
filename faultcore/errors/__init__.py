"""
faultcore.errors - Fault taxonomy, strategies and recovery

Typed faults, a pluggable strategy registry, the recovery dispatcher and
global interception hooks.
"""

from .taxonomy import (
    FaultKind,
    AuthAction,
    AppFault,
    ApiFault,
    ValidationFault,
    NetworkFault,
    AuthFault,
    PermissionFault,
    NotFoundFault,
    RateLimitFault,
    ErrorDetails,
    UNKNOWN_ERROR_MESSAGE,
    is_app_fault,
    is_api_fault,
    is_validation_fault,
    is_network_fault,
    is_auth_fault,
    is_permission_fault,
    is_not_found_fault,
    is_rate_limit_fault,
    classify,
    extract_message,
    extract_details,
    create_fault,
    get_error_summary,
)

from .messages import (
    ERROR_MESSAGES,
    SUCCESS_MESSAGES,
    get_error_message,
    is_valid_error_code,
    get_success_message,
    is_valid_success_key,
)

from .decision import RecoveryAction, RecoveryDecision

from .strategies import (
    Strategy,
    StrategyRegistry,
    get_strategy_registry,
    reset_strategy_registry,
)

from .recovery import (
    RecoveryDispatcher,
    get_recovery_dispatcher,
    reset_recovery_dispatcher,
    handle_error,
    report_error_to_service,
)

from .statistics import ErrorStatistics, get_error_statistics

from .interception import (
    install,
    uninstall,
    is_installed,
    handle_uncaught_exception,
    handle_unhandled_rejection,
)

__all__ = [
    # Taxonomy
    "FaultKind",
    "AuthAction",
    "AppFault",
    "ApiFault",
    "ValidationFault",
    "NetworkFault",
    "AuthFault",
    "PermissionFault",
    "NotFoundFault",
    "RateLimitFault",
    "ErrorDetails",
    "UNKNOWN_ERROR_MESSAGE",
    "is_app_fault",
    "is_api_fault",
    "is_validation_fault",
    "is_network_fault",
    "is_auth_fault",
    "is_permission_fault",
    "is_not_found_fault",
    "is_rate_limit_fault",
    "classify",
    "extract_message",
    "extract_details",
    "create_fault",
    "get_error_summary",
    # Catalog
    "ERROR_MESSAGES",
    "SUCCESS_MESSAGES",
    "get_error_message",
    "is_valid_error_code",
    "get_success_message",
    "is_valid_success_key",
    # Recovery
    "RecoveryAction",
    "RecoveryDecision",
    "Strategy",
    "StrategyRegistry",
    "get_strategy_registry",
    "reset_strategy_registry",
    "RecoveryDispatcher",
    "get_recovery_dispatcher",
    "reset_recovery_dispatcher",
    "handle_error",
    "report_error_to_service",
    # Interception
    "ErrorStatistics",
    "get_error_statistics",
    "install",
    "uninstall",
    "is_installed",
    "handle_uncaught_exception",
    "handle_unhandled_rejection",
]
