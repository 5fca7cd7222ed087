"""
errors/taxonomy.py - Fault classification system

Closed set of typed fault variants. Each variant fixes its status code
and user-facing flag at construction, so the recovery dispatcher can
decide on policy from the type alone.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from enum import Enum
import logging
import traceback

logger = logging.getLogger("errors.taxonomy")


UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


class FaultKind(Enum):
    """Classification tag for any value that reaches the error handler."""
    API = "api"
    VALIDATION = "validation"
    NETWORK = "network"
    AUTH = "auth"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"

    # Typed fault outside the variants above
    APP = "app"

    # Plain exception, bare string, anything else
    EXCEPTION = "exception"
    STRING = "string"
    OPAQUE = "opaque"


class AuthAction(Enum):
    """Auth operation that failed."""
    LOGIN = "login"
    LOGOUT = "logout"
    REFRESH = "refresh"
    VERIFY = "verify"
    REGISTER = "register"


class AppFault(Exception):
    """
    Base class for all application faults.

    Carries a stable ``code`` for tracking, an HTTP-style ``status_code``
    and a ``context`` mapping that goes straight into log entries.
    """

    kind = FaultKind.APP

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        context: Optional[Mapping[str, Any]] = None,
        is_user_facing: bool = False,
        metadata: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.context: Dict[str, Any] = dict(context or {})
        self.is_user_facing = is_user_facing
        self.metadata: Optional[Dict[str, Any]] = dict(metadata) if metadata else None

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "context": self.context,
            "is_user_facing": self.is_user_facing,
        }


class ApiFault(AppFault):
    """Remote API call failed. User-facing unless the server broke."""

    kind = FaultKind.API

    def __init__(
        self,
        message: str,
        response_status: int,
        method: str = "GET",
        url: str = "",
        response_data: Optional[Mapping[str, Any]] = None,
        duration: Optional[float] = None,
    ):
        super().__init__(
            message,
            code=f"API_ERROR_{response_status}",
            status_code=response_status,
            context={"method": method, "url": url, "response_status": response_status},
            is_user_facing=response_status < 500,
        )
        self.response_status = response_status
        self.response_data: Optional[Dict[str, Any]] = dict(response_data) if response_data else None
        self.method = method
        self.url = url
        self.duration = duration


class ValidationFault(AppFault):
    """Input failed validation. Always user-facing."""

    kind = FaultKind.VALIDATION

    def __init__(
        self,
        message: str,
        field_errors: Mapping[str, List[str]],
        invalid_values: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            status_code=400,
            context={"field_count": len(field_errors)},
            is_user_facing=True,
        )
        self.field_errors: Dict[str, List[str]] = {k: list(v) for k, v in field_errors.items()}
        self.invalid_values: Optional[Dict[str, Any]] = dict(invalid_values) if invalid_values else None


class NetworkFault(AppFault):
    """Connectivity failure. Users get a generic message."""

    kind = FaultKind.NETWORK

    def __init__(
        self,
        message: str,
        retry_count: int = 0,
        max_retries: int = 3,
        should_retry: bool = True,
        retry_delay: Optional[int] = None,
    ):
        super().__init__(
            message,
            code="NETWORK_ERROR",
            status_code=503,
            context={
                "retry_count": retry_count,
                "max_retries": max_retries,
                "should_retry": should_retry,
            },
            is_user_facing=False,
        )
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.should_retry = should_retry
        self.retry_delay = retry_delay

    @property
    def can_retry(self) -> bool:
        return self.should_retry and self.retry_count < self.max_retries


class AuthFault(AppFault):
    """Authentication operation failed."""

    kind = FaultKind.AUTH

    def __init__(
        self,
        message: str,
        auth_action: AuthAction = AuthAction.LOGIN,
        should_redirect_to_login: bool = True,
    ):
        auth_action = AuthAction(auth_action)
        super().__init__(
            message,
            code=f"AUTH_ERROR_{auth_action.value.upper()}",
            status_code=401,
            context={"auth_action": auth_action.value},
            is_user_facing=True,
        )
        self.auth_action = auth_action
        self.should_redirect_to_login = should_redirect_to_login


class PermissionFault(AppFault):
    """Caller lacks a required capability."""

    kind = FaultKind.PERMISSION

    def __init__(
        self,
        message: str,
        required_capability: str,
        held_capabilities: Optional[List[str]] = None,
    ):
        held = list(held_capabilities or [])
        super().__init__(
            message,
            code="PERMISSION_ERROR",
            status_code=403,
            context={"required_capability": required_capability, "held_capabilities": held},
            is_user_facing=True,
        )
        self.required_capability = required_capability
        self.held_capabilities = held


class NotFoundFault(AppFault):
    kind = FaultKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f'{resource_type} with ID "{resource_id}" not found',
            code="NOT_FOUND_ERROR",
            status_code=404,
            context={"resource_type": resource_type, "resource_id": resource_id},
            is_user_facing=True,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class RateLimitFault(AppFault):
    """Rate limit exceeded. ``reset_time`` is in milliseconds."""

    kind = FaultKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        limit: int,
        current: int,
        reset_time: Optional[int] = None,
    ):
        super().__init__(
            message,
            code="RATE_LIMIT_ERROR",
            status_code=429,
            context={"limit": limit, "current": current, "reset_time": reset_time},
            is_user_facing=True,
        )
        self.limit = limit
        self.current = current
        self.reset_time = reset_time


# =============================================================================
# Guards
# =============================================================================

def is_app_fault(value: Any) -> bool:
    return isinstance(value, AppFault)


def is_api_fault(value: Any) -> bool:
    return isinstance(value, ApiFault)


def is_validation_fault(value: Any) -> bool:
    return isinstance(value, ValidationFault)


def is_network_fault(value: Any) -> bool:
    return isinstance(value, NetworkFault)


def is_auth_fault(value: Any) -> bool:
    return isinstance(value, AuthFault)


def is_permission_fault(value: Any) -> bool:
    return isinstance(value, PermissionFault)


def is_not_found_fault(value: Any) -> bool:
    return isinstance(value, NotFoundFault)


def is_rate_limit_fault(value: Any) -> bool:
    return isinstance(value, RateLimitFault)


def classify(value: Any) -> FaultKind:
    """Tag ``value`` with the most specific FaultKind that applies."""
    if isinstance(value, AppFault):
        return value.kind
    if isinstance(value, BaseException):
        return FaultKind.EXCEPTION
    if isinstance(value, str):
        return FaultKind.STRING
    return FaultKind.OPAQUE


# =============================================================================
# Extraction
# =============================================================================

@dataclass
class ErrorDetails:
    """Normalized view of any fault value, used for logging and reporting."""

    message: str
    stack: Optional[str] = None
    code: Optional[str] = None
    status_code: Optional[int] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "stack": self.stack,
            "code": self.code,
            "status_code": self.status_code,
            "context": self.context,
        }


def extract_message(value: Any) -> str:
    """Best-effort human-readable message. Never raises."""
    try:
        if isinstance(value, BaseException):
            return str(value) or type(value).__name__
        if isinstance(value, str):
            return value
        if isinstance(value, Mapping) and "message" in value:
            return str(value["message"])
        if value is not None and hasattr(value, "message"):
            return str(getattr(value, "message"))
        if value is not None:
            text = str(value)
            if text:
                return text
    except Exception as e:
        logger.debug(f"Could not extract message from {type(value).__name__}: {e}")
    return UNKNOWN_ERROR_MESSAGE


def format_stack(error: BaseException) -> Optional[str]:
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def extract_details(value: Any) -> ErrorDetails:
    """Normalize any value to ErrorDetails. Never raises."""
    try:
        if isinstance(value, AppFault):
            return ErrorDetails(
                message=value.message,
                stack=format_stack(value),
                code=value.code,
                status_code=value.status_code,
                context=dict(value.context),
            )
        if isinstance(value, BaseException):
            return ErrorDetails(message=extract_message(value), stack=format_stack(value))
    except Exception as e:
        logger.debug(f"Could not extract details from {type(value).__name__}: {e}")
    return ErrorDetails(message=extract_message(value))


def create_fault(
    message: str,
    code: str = "APP_ERROR",
    status_code: int = 500,
    context: Optional[Mapping[str, Any]] = None,
) -> AppFault:
    """Factory for generic typed faults."""
    return AppFault(message, code=code, status_code=status_code, context=context)


def get_error_summary(value: Any) -> str:
    """One-line summary: ``message [code] (status)``."""
    details = extract_details(value)
    summary = details.message
    if details.code:
        summary = f"{summary} [{details.code}]"
    if details.status_code is not None:
        summary = f"{summary} ({details.status_code})"
    return summary
