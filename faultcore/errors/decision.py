"""
errors/decision.py - Recovery decisions

What the caller should do after a fault: show a message and optionally
retry, redirect to login, reload, or send the user to support.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from enum import Enum


class RecoveryAction(Enum):
    """Recommended follow-up for the caller."""
    RETRY = "retry"
    REDIRECT = "redirect"
    RELOAD = "reload"
    CONTACT_SUPPORT = "contact_support"


@dataclass
class RecoveryDecision:
    """Result of dispatching one fault. Built fresh per dispatch."""

    handled: bool
    user_message: str
    action: Optional[RecoveryAction] = None
    retry_delay_ms: Optional[int] = None
    redirect_to_login: bool = False
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handled": self.handled,
            "user_message": self.user_message,
            "action": self.action.value if self.action else None,
            "retry_delay_ms": self.retry_delay_ms,
            "redirect_to_login": self.redirect_to_login,
            "context": self.context,
        }


def decision_for_status(
    status_code: int,
    user_message: str,
    server_retry_delay_ms: int,
    rate_limit_delay_ms: Optional[int] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> RecoveryDecision:
    """
    Apply the HTTP status policy table.

    401 redirects to login, 403 goes to support, 404 needs no action,
    429 and 5xx retry. Any other status gets no action.
    """
    decision = RecoveryDecision(
        handled=True,
        user_message=user_message,
        context=dict(context or {}),
    )

    if status_code == 401:
        decision.action = RecoveryAction.REDIRECT
        decision.redirect_to_login = True
    elif status_code == 403:
        decision.action = RecoveryAction.CONTACT_SUPPORT
    elif status_code == 404:
        decision.action = None
    elif status_code == 429:
        decision.action = RecoveryAction.RETRY
        decision.retry_delay_ms = rate_limit_delay_ms if rate_limit_delay_ms is not None else 5000
    elif status_code >= 500:
        decision.action = RecoveryAction.RETRY
        decision.retry_delay_ms = server_retry_delay_ms

    return decision
