"""
errors/messages.py - Error-code catalog

User-facing messages keyed by stable error code. The recovery dispatcher
prefers a catalog message whenever a fault (or an API response body)
carries a known code.
"""

from __future__ import annotations
from typing import Dict, Optional


ERROR_MESSAGES: Dict[str, str] = {
    # Authentication (AUTH_xxx)
    "AUTH_001": "Invalid credentials",
    "AUTH_002": "Token expired",
    "AUTH_003": "Invalid token",
    "AUTH_004": "Session expired",
    "AUTH_005": "Unauthorized access",
    "AUTH_006": "Account locked",
    "AUTH_007": "Password reset required",
    "AUTH_008": "Multi-factor authentication required",
    "AUTH_009": "Invalid email or password",
    "AUTH_010": "Please verify your email address before logging in",
    "AUTH_011": "Your account is inactive. Please contact support.",
    "AUTH_012": "This email address is already registered",
    "AUTH_013": "Your session has expired. Please log in again.",

    # Users (USER_xxx)
    "USER_001": "User not found",
    "USER_002": "Email address already exists",
    "USER_003": "User already approved",
    "USER_004": "User already rejected",
    "USER_005": "Invalid user status transition",
    "USER_006": "Cannot delete system user",
    "USER_007": "User is inactive",
    "USER_008": "User account is suspended",
    "USER_009": "User email not verified",
    "USER_010": "Invalid user data",

    # Roles (ROLE_xxx)
    "ROLE_001": "Role not found",
    "ROLE_002": "Role name already exists",
    "ROLE_003": "Cannot delete system role",
    "ROLE_004": "Cannot modify system role",
    "ROLE_005": "Invalid role level",
    "ROLE_006": "Role has assigned users",
    "ROLE_007": "Invalid permission format",
    "ROLE_008": "Permission not found",
    "ROLE_009": "Role hierarchy violation",
    "ROLE_010": "Invalid role data",

    # Permissions (PERM_xxx)
    "PERM_001": "Permission denied",
    "PERM_002": "Insufficient privileges",
    "PERM_003": "Missing required permission",
    "PERM_004": "Invalid permission scope",
    "PERM_005": "Permission not found",

    # Analytics (ANALYTICS_xxx)
    "ANALYTICS_001": "Analytics data not available",
    "ANALYTICS_002": "Invalid date range",
    "ANALYTICS_003": "Invalid time period",
    "ANALYTICS_004": "Analytics calculation failed",
    "ANALYTICS_005": "No data for selected period",

    # Audit (AUDIT_xxx)
    "AUDIT_001": "Audit log not found",
    "AUDIT_002": "Invalid audit filters",
    "AUDIT_003": "Export format not supported",
    "AUDIT_004": "Export generation failed",
    "AUDIT_005": "Too many results to export",

    # Validation (VALIDATION_xxx)
    "VALIDATION_001": "Invalid input data",
    "VALIDATION_002": "Required field missing",
    "VALIDATION_003": "Invalid email format",
    "VALIDATION_004": "Invalid password format",
    "VALIDATION_005": "Password too weak",
    "VALIDATION_006": "Invalid phone number",
    "VALIDATION_007": "Invalid date format",
    "VALIDATION_008": "Value out of range",
    "VALIDATION_009": "Invalid file format",
    "VALIDATION_010": "File too large",
    "VALIDATION_ERROR": "Please check your input and try again",

    # System (SYSTEM_xxx)
    "SYSTEM_001": "Internal server error",
    "SYSTEM_002": "Service unavailable",
    "SYSTEM_003": "Database error",
    "SYSTEM_004": "Cache error",
    "SYSTEM_005": "External service error",
    "SYSTEM_006": "Rate limit exceeded",
    "SYSTEM_007": "Maintenance mode",
    "SYSTEM_008": "Resource exhausted",
    "SYSTEM_ERROR": "Something went wrong. Please try again later.",

    # Transport
    "NETWORK_ERROR": "Network connection failed. Please check your internet connection.",
    "TIMEOUT_ERROR": "Request timed out. Please try again.",
    "RATE_LIMIT_EXCEEDED": "Too many attempts. Please try again later.",

    # Fallbacks
    "DEFAULT": "An unexpected error occurred",
    "UNKNOWN_ERROR": "An unexpected error occurred. Please try again.",
}


def get_error_message(code: Optional[str] = None) -> str:
    """Message for ``code``, or the DEFAULT message if unknown."""
    if code and code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    return ERROR_MESSAGES["DEFAULT"]


def is_valid_error_code(code: Optional[str]) -> bool:
    return bool(code) and code in ERROR_MESSAGES


def lookup_error_message(code: Optional[str]) -> Optional[str]:
    """Catalog message for ``code``, or None. No DEFAULT fallback."""
    if is_valid_error_code(code):
        return ERROR_MESSAGES[code]
    return None


SUCCESS_MESSAGES: Dict[str, str] = {
    # Users
    "USER_CREATED": "User created successfully",
    "USER_UPDATED": "User updated successfully",
    "USER_DELETED": "User deleted successfully",
    "USER_APPROVED": "User approved successfully",
    "USER_REJECTED": "User rejected successfully",
    "USER_ACTIVATED": "User activated successfully",
    "USER_SUSPENDED": "User suspended successfully",
    "USERS_BULK_APPROVED": "Users approved successfully",
    "USERS_BULK_REJECTED": "Users rejected successfully",
    "USERS_BULK_DELETED": "Users deleted successfully",

    # Roles
    "ROLE_CREATED": "Role created successfully",
    "ROLE_UPDATED": "Role updated successfully",
    "ROLE_DELETED": "Role deleted successfully",
    "ROLE_ASSIGNED": "Role assigned successfully",
    "ROLE_REVOKED": "Role revoked successfully",
    "ROLES_ASSIGNED": "Roles assigned successfully",

    # Analytics and audit
    "ANALYTICS_EXPORTED": "Analytics exported successfully",
    "ANALYTICS_REFRESHED": "Analytics refreshed successfully",
    "AUDIT_EXPORTED": "Audit logs exported successfully",
    "AUDIT_CLEARED": "Audit logs cleared successfully",

    # Settings
    "SETTINGS_UPDATED": "Settings updated successfully",
    "SETTINGS_RESET": "Settings reset to defaults",

    # Generic
    "OPERATION_SUCCESS": "Operation completed successfully",
    "CHANGES_SAVED": "Changes saved successfully",
    "DATA_EXPORTED": "Data exported successfully",

    # Auth
    "LOGIN_SUCCESS": "Login successful",
    "LOGOUT_SUCCESS": "Logout successful",
    "REGISTER_SUCCESS": "Registration successful",
    "PASSWORD_RESET_SENT": "Password reset link sent to your email",
    "PASSWORD_CHANGED": "Password changed successfully",
    "EMAIL_VERIFIED": "Email verified successfully",
}


def get_success_message(key: str) -> str:
    """Raises KeyError for an unknown key."""
    return SUCCESS_MESSAGES[key]


def is_valid_success_key(key: str) -> bool:
    return key in SUCCESS_MESSAGES
