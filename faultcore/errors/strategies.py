"""
errors/strategies.py - Pluggable fault-handling strategies

Named (predicate, handler) pairs kept sorted by priority, highest first.
The recovery dispatcher consults the registry for values that are not
typed faults. Register domain strategies to extend handling without
touching the dispatcher:

    registry = get_strategy_registry()
    registry.register(Strategy(
        name="QuotaExceeded",
        predicate=lambda e: isinstance(e, QuotaExceeded),
        handle=lambda e: RecoveryDecision(handled=True, user_message="Quota reached"),
        priority=80,
    ))
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple, TYPE_CHECKING
import threading

import httpx

from .decision import RecoveryAction, RecoveryDecision, decision_for_status
from .messages import ERROR_MESSAGES, lookup_error_message
from .taxonomy import extract_message

if TYPE_CHECKING:
    from faultcore.eventlog.logger import EventLogger


DEFAULT_PRIORITY = 50


@dataclass
class Strategy:
    """One handling strategy. Higher priority is checked first."""

    name: str
    predicate: Callable[[Any], bool]
    handle: Callable[[Any], RecoveryDecision]
    priority: int = DEFAULT_PRIORITY

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Strategy name must be a non-empty string")


class StrategyRegistry:
    """Ordered collection of strategies, unique by name."""

    def __init__(self, logger: Optional["EventLogger"] = None):
        self._strategies: List[Strategy] = []
        self._logger = logger

    @property
    def log(self) -> "EventLogger":
        if self._logger is not None:
            return self._logger
        from faultcore.eventlog.logger import get_event_logger
        return get_event_logger()

    @property
    def strategies(self) -> Tuple[Strategy, ...]:
        return tuple(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)

    def register(self, strategy: Strategy) -> None:
        """Add ``strategy``, replacing any strategy with the same name."""
        existing = self._index_of(strategy.name)
        if existing is not None:
            self.log.warn(
                "Overwriting existing error strategy",
                metadata={"strategy_name": strategy.name},
            )
            del self._strategies[existing]

        self._strategies.append(strategy)
        # Stable sort keeps registration order among equal priorities
        self._strategies.sort(key=lambda s: s.priority, reverse=True)

        self.log.info(
            "Registered error strategy",
            metadata={
                "name": strategy.name,
                "priority": strategy.priority,
                "total_strategies": len(self._strategies),
            },
        )

    def unregister(self, name: str) -> bool:
        index = self._index_of(name)
        if index is None:
            return False
        del self._strategies[index]
        self.log.info(
            "Unregistered error strategy",
            metadata={"name": name, "remaining_strategies": len(self._strategies)},
        )
        return True

    def resolve(self, fault: Any) -> Optional[Strategy]:
        """First strategy, by priority, whose predicate accepts ``fault``."""
        for strategy in list(self._strategies):
            try:
                matched = strategy.predicate(fault)
            except Exception as e:
                self.log.error(
                    f"Error strategy '{strategy.name}' raised in predicate",
                    error=e,
                    metadata={"strategy_name": strategy.name},
                )
                continue

            if matched:
                self.log.debug(
                    "Found error strategy",
                    metadata={"strategy_name": strategy.name, "priority": strategy.priority},
                )
                return strategy
        return None

    def handle(self, fault: Any) -> Optional[RecoveryDecision]:
        """Run the matching strategy's handler, or return None."""
        strategy = self.resolve(fault)
        if strategy is None:
            return None
        return strategy.handle(fault)

    def clear(self) -> None:
        count = len(self._strategies)
        self._strategies.clear()
        self.log.info("Cleared all error strategies", metadata={"count": count})

    def _index_of(self, name: str) -> Optional[int]:
        for i, strategy in enumerate(self._strategies):
            if strategy.name == name:
                return i
        return None


# =============================================================================
# Built-in strategies
# =============================================================================

def _field(value: Any, *names: str) -> Any:
    """Read the first present attribute or mapping key among ``names``."""
    for name in names:
        if isinstance(value, Mapping):
            if name in value:
                return value[name]
        elif hasattr(value, name):
            return getattr(value, name)
    return None


def _has_field(value: Any, *names: str) -> bool:
    for name in names:
        if isinstance(value, Mapping):
            if name in value:
                return True
        elif value is not None and not isinstance(value, (str, bytes)) and hasattr(value, name):
            return True
    return False


def _is_api_shaped(value: Any) -> bool:
    return _has_field(value, "status_code", "statusCode") and _has_field(value, "code")


def _handle_api_shaped(value: Any) -> RecoveryDecision:
    status = _field(value, "status_code", "statusCode")
    code = _field(value, "code")
    try:
        status = int(status)
    except (TypeError, ValueError):
        status = 500

    message = lookup_error_message(code) or extract_message(value)
    context = dict(_field(value, "context") or {})
    context.update({"code": code, "status_code": status})

    return decision_for_status(
        status,
        message,
        server_retry_delay_ms=3000,
        context=context,
    )


def _is_validation_shaped(value: Any) -> bool:
    return _field(value, "code") == "VALIDATION_ERROR"


def _handle_validation_shaped(value: Any) -> RecoveryDecision:
    field_errors = _field(value, "field_errors", "fieldErrors", "errors")
    count = len(field_errors) if isinstance(field_errors, Mapping) else 0
    context = dict(_field(value, "context") or {})
    context.update({
        "code": "VALIDATION_ERROR",
        "status_code": 400,
        "field_errors": dict(field_errors) if isinstance(field_errors, Mapping) else None,
    })
    return RecoveryDecision(
        handled=True,
        user_message=validation_summary(count),
        context=context,
    )


def validation_summary(count: int) -> str:
    return f"Please fix {count} validation error{'' if count == 1 else 's'}"


def _is_network_failure(value: Any) -> bool:
    if isinstance(value, (ConnectionError, TimeoutError, httpx.TransportError)):
        return True
    if isinstance(value, TypeError):
        text = str(value).lower()
        return "fetch" in text or "network" in text
    return False


def _handle_network_failure(value: Any) -> RecoveryDecision:
    return RecoveryDecision(
        handled=True,
        user_message=ERROR_MESSAGES["NETWORK_ERROR"],
        action=RecoveryAction.RETRY,
        retry_delay_ms=5000,
        context={
            "code": "NETWORK_ERROR",
            "status_code": 0,
            "original_message": extract_message(value),
        },
    )


def _handle_standard_exception(value: Any) -> RecoveryDecision:
    return RecoveryDecision(
        handled=True,
        user_message=str(value) or ERROR_MESSAGES["DEFAULT"],
        action=RecoveryAction.CONTACT_SUPPORT,
        context={"code": "ERROR", "status_code": 500, "name": type(value).__name__},
    )


def _handle_string(value: Any) -> RecoveryDecision:
    return RecoveryDecision(
        handled=True,
        user_message=value or ERROR_MESSAGES["DEFAULT"],
        action=RecoveryAction.CONTACT_SUPPORT,
        context={"code": "STRING_ERROR", "status_code": 500},
    )


def builtin_strategies() -> List[Strategy]:
    """Fresh copies of the built-in strategies, highest priority first."""
    return [
        Strategy("APIError", _is_api_shaped, _handle_api_shaped, priority=100),
        Strategy("ValidationError", _is_validation_shaped, _handle_validation_shaped, priority=90),
        Strategy("NetworkError", _is_network_failure, _handle_network_failure, priority=85),
        Strategy("StandardError", lambda e: isinstance(e, Exception), _handle_standard_exception, priority=50),
        Strategy("StringError", lambda e: isinstance(e, str), _handle_string, priority=10),
    ]


# =============================================================================
# Singleton
# =============================================================================

_registry: Optional[StrategyRegistry] = None
_registry_lock = threading.Lock()


def get_strategy_registry() -> StrategyRegistry:
    """Process-wide registry, seeded with the built-ins on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                registry = StrategyRegistry()
                for strategy in builtin_strategies():
                    registry.register(strategy)
                _registry = registry
    return _registry


def reset_strategy_registry() -> None:
    global _registry
    with _registry_lock:
        _registry = None
