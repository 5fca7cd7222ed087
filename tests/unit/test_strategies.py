"""
Unit tests for StrategyRegistry and the built-in strategies.
"""

import httpx
import pytest

from faultcore.errors.decision import RecoveryAction, RecoveryDecision
from faultcore.errors.messages import ERROR_MESSAGES
from faultcore.errors.strategies import (
    Strategy,
    StrategyRegistry,
    builtin_strategies,
    get_strategy_registry,
    reset_strategy_registry,
)
from faultcore.eventlog.levels import Severity


def decision(message):
    return lambda fault: RecoveryDecision(handled=True, user_message=message)


def always(fault):
    return True


@pytest.fixture
def registry(event_logger):
    return StrategyRegistry(logger=event_logger)


class TestStrategy:
    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            Strategy("", always, decision("x"))
        with pytest.raises(ValueError):
            Strategy("   ", always, decision("x"))

    def test_default_priority(self):
        assert Strategy("S", always, decision("x")).priority == 50


class TestRegistration:
    """Tests for register / unregister / clear."""

    def test_sorted_by_priority(self, registry):
        registry.register(Strategy("C", always, decision("C"), priority=10))
        registry.register(Strategy("B", always, decision("B"), priority=90))
        registry.register(Strategy("A", always, decision("A"), priority=50))

        assert [s.name for s in registry.strategies] == ["B", "A", "C"]

    def test_equal_priority_keeps_registration_order(self, registry):
        registry.register(Strategy("first", always, decision("1"), priority=50))
        registry.register(Strategy("second", always, decision("2"), priority=50))

        assert [s.name for s in registry.strategies] == ["first", "second"]

    def test_highest_matching_priority_wins(self, registry):
        """B (90) and C (10) both match; B's decision is returned."""
        registry.register(Strategy("C", lambda f: f == "match", decision("C"), priority=10))
        registry.register(Strategy("B", lambda f: f == "match", decision("B"), priority=90))
        registry.register(Strategy("A", lambda f: False, decision("A"), priority=50))

        assert registry.handle("match").user_message == "B"

    def test_register_same_name_replaces(self, registry, event_logger):
        registry.register(Strategy("X", lambda f: False, decision("old")))
        registry.register(Strategy("X", always, decision("new")))

        assert len(registry) == 1
        assert registry.handle("anything").user_message == "new"

        warnings = [e for e in event_logger.get_logs() if e.level == Severity.WARN]
        assert len(warnings) == 1
        assert warnings[0].message == "Overwriting existing error strategy"
        assert warnings[0].metadata["strategy_name"] == "X"

    def test_registration_logged(self, registry, event_logger):
        registry.register(Strategy("X", always, decision("x"), priority=70))

        entry = event_logger.get_logs()[-1]
        assert entry.level == Severity.INFO
        assert entry.message == "Registered error strategy"
        assert entry.metadata["priority"] == 70

    def test_unregister(self, registry):
        registry.register(Strategy("X", always, decision("x")))
        assert registry.unregister("X") is True
        assert registry.unregister("X") is False
        assert len(registry) == 0

    def test_clear(self, registry):
        for strategy in builtin_strategies():
            registry.register(strategy)
        registry.clear()
        assert registry.strategies == ()

    def test_strategies_is_read_only_view(self, registry):
        registry.register(Strategy("X", always, decision("x")))
        assert isinstance(registry.strategies, tuple)


class TestResolution:
    """Tests for resolve."""

    def test_no_match(self, registry):
        registry.register(Strategy("never", lambda f: False, decision("x")))
        assert registry.resolve("anything") is None
        assert registry.handle("anything") is None

    def test_broken_predicate_skipped(self, registry, event_logger):
        def broken(fault):
            raise RuntimeError("predicate bug")

        registry.register(Strategy("broken", broken, decision("broken"), priority=100))
        registry.register(Strategy("fallback", always, decision("fallback"), priority=1))

        assert registry.handle("x").user_message == "fallback"

        errors = [e for e in event_logger.get_logs() if e.level == Severity.ERROR]
        assert len(errors) == 1
        assert errors[0].metadata["strategy_name"] == "broken"

    def test_match_logged_at_debug(self, registry, event_logger):
        registry.register(Strategy("S", always, decision("s")))
        registry.resolve("x")

        entry = event_logger.get_logs()[-1]
        assert entry.level == Severity.DEBUG
        assert entry.message == "Found error strategy"


class TestBuiltins:
    """Tests for the pre-registered strategies."""

    def test_seeded_in_priority_order(self, event_logger):
        registry = get_strategy_registry()
        assert [(s.name, s.priority) for s in registry.strategies] == [
            ("APIError", 100),
            ("ValidationError", 90),
            ("NetworkError", 85),
            ("StandardError", 50),
            ("StringError", 10),
        ]

    def test_singleton(self, event_logger):
        assert get_strategy_registry() is get_strategy_registry()
        first = get_strategy_registry()
        reset_strategy_registry()
        assert get_strategy_registry() is not first

    def test_api_shaped_mapping(self, event_logger):
        result = get_strategy_registry().handle({"code": "AUTH_001", "status_code": 401, "message": "x"})

        assert result.action == RecoveryAction.REDIRECT
        assert result.redirect_to_login is True
        assert result.user_message == ERROR_MESSAGES["AUTH_001"]
        assert result.context["status_code"] == 401

    def test_api_shaped_server_error(self, event_logger):
        result = get_strategy_registry().handle({"code": "UPSTREAM", "statusCode": 502, "message": "Upstream down"})

        assert result.action == RecoveryAction.RETRY
        assert result.retry_delay_ms == 3000
        assert result.user_message == "Upstream down"

    def test_validation_shaped(self, event_logger):
        class Shaped:
            code = "VALIDATION_ERROR"
            field_errors = {"email": ["required"], "name": ["too short"]}

        result = get_strategy_registry().handle(Shaped())

        assert result.user_message == "Please fix 2 validation errors"
        assert result.action is None

    @pytest.mark.parametrize("error", [
        ConnectionError("refused"),
        TimeoutError("slow"),
        httpx.ConnectError("dns"),
        TypeError("Failed to fetch"),
    ])
    def test_network_failures(self, event_logger, error):
        result = get_strategy_registry().handle(error)

        assert result.action == RecoveryAction.RETRY
        assert result.retry_delay_ms == 5000
        assert result.user_message == ERROR_MESSAGES["NETWORK_ERROR"]

    def test_plain_type_error_is_standard(self, event_logger):
        result = get_strategy_registry().handle(TypeError("unsupported operand"))
        assert result.action == RecoveryAction.CONTACT_SUPPORT
        assert result.context["name"] == "TypeError"

    def test_string(self, event_logger):
        result = get_strategy_registry().handle("Something odd")
        assert result.user_message == "Something odd"
        assert result.context["code"] == "STRING_ERROR"

    def test_opaque_value_unmatched(self, event_logger):
        assert get_strategy_registry().handle(12345) is None
