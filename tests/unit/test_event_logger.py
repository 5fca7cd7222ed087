"""
Unit tests for EventLogger.

Tests severity filtering, bounded history, context, console mirroring,
timers, export and production forwarding.
"""

import json
from unittest.mock import Mock, patch

import pytest

from faultcore.eventlog.config import LoggerConfig
from faultcore.eventlog.entry import LogEntry
from faultcore.eventlog.levels import Severity, level_for_environment, should_log
from faultcore.eventlog.logger import EventLogger, get_event_logger, reset_event_logger


def make_logger(**kwargs):
    kwargs.setdefault("console", False)
    return EventLogger(LoggerConfig(**kwargs))


class TestSeverity:
    """Tests for severity ordering and parsing."""

    def test_total_order(self):
        """FATAL is the most important level, TRACE the least."""
        assert Severity.FATAL < Severity.ERROR < Severity.WARN < Severity.INFO < Severity.DEBUG < Severity.TRACE

    def test_should_log(self):
        assert should_log(Severity.ERROR, Severity.WARN) is True
        assert should_log(Severity.WARN, Severity.WARN) is True
        assert should_log(Severity.INFO, Severity.WARN) is False

    def test_parse_aliases(self):
        assert Severity.parse("warning") == Severity.WARN
        assert Severity.parse("CRITICAL") == Severity.FATAL
        assert Severity.parse(" debug ") == Severity.DEBUG
        assert Severity.parse(3) == Severity.INFO

    def test_parse_unknown_returns_default(self):
        assert Severity.parse("loud") is None
        assert Severity.parse("loud", Severity.INFO) == Severity.INFO
        assert Severity.parse(42, Severity.ERROR) == Severity.ERROR

    def test_level_for_environment(self):
        assert level_for_environment("development") == Severity.DEBUG
        assert level_for_environment("staging") == Severity.INFO
        assert level_for_environment("production") == Severity.WARN
        assert level_for_environment("test") == Severity.INFO
        assert level_for_environment("production", debug=True) == Severity.DEBUG


class TestLoggerConfig:
    """Tests for LoggerConfig.for_environment."""

    def test_production_defaults(self):
        config = LoggerConfig.for_environment("production")
        assert config.level == Severity.WARN
        assert config.performance_tracking is False
        assert config.is_production

    def test_explicit_level_wins(self):
        config = LoggerConfig.for_environment("production", level="debug")
        assert config.level == Severity.DEBUG
        assert config.performance_tracking is True

    def test_overrides(self):
        config = LoggerConfig.for_environment("staging", max_logs=10, console=False)
        assert config.max_logs == 10
        assert config.console is False


class TestLevelFiltering:
    """Entries below the configured level are dropped entirely."""

    def test_warn_threshold(self):
        """With WARN, only FATAL/ERROR/WARN are recorded."""
        log = make_logger(level=Severity.WARN)

        log.fatal("f")
        log.error("e")
        log.warn("w")
        log.info("i")
        log.debug("d")
        log.trace("t")

        assert [e.level for e in log.get_logs()] == [Severity.FATAL, Severity.ERROR, Severity.WARN]

    def test_filtered_entry_not_mirrored(self):
        console = Mock()
        log = EventLogger(LoggerConfig(level=Severity.ERROR), console=console)

        log.info("quiet")

        console.info.assert_not_called()
        assert log.log_count == 0

    def test_is_level_enabled(self):
        log = make_logger(level=Severity.INFO)
        assert log.is_level_enabled(Severity.WARN)
        assert log.is_level_enabled("info")
        assert not log.is_level_enabled("debug")
        assert not log.is_level_enabled("nonsense")

    def test_warning_alias(self):
        log = make_logger(level=Severity.WARN)
        log.warning("alias")
        assert log.get_logs()[0].level == Severity.WARN

    def test_level_given_by_name(self):
        log = make_logger(level=Severity.WARN)

        log.log("ERROR", "by name")
        log.log("debug", "filtered")

        assert [(e.level, e.message) for e in log.get_logs()] == [(Severity.ERROR, "by name")]

    def test_unknown_level_does_not_raise(self):
        """Bad levels are dropped, never raised to the caller."""
        log = make_logger(level=Severity.TRACE)

        log.log("LOUD", "x")
        log.log(None, "y")
        log.log(3.5, "z")

        assert log.log_count == 0


class TestHistory:
    """Tests for the bounded in-memory history."""

    def test_bounded_fifo(self):
        """Oldest entries are evicted once max_logs is reached."""
        log = make_logger(level=Severity.TRACE, max_logs=3)

        for i in range(5):
            log.info(f"message {i}")

        messages = [e.message for e in log.get_logs()]
        assert messages == ["message 2", "message 3", "message 4"]

    def test_persistence_off(self):
        log = make_logger(level=Severity.TRACE, persistence=False)
        log.error("not stored")
        assert log.get_logs() == []

    def test_get_logs_is_a_copy(self):
        log = make_logger(level=Severity.TRACE)
        log.info("one")
        snapshot = log.get_logs()
        snapshot.clear()
        assert log.log_count == 1

    def test_clear_logs(self):
        log = make_logger(level=Severity.TRACE)
        log.info("one")
        log.clear_logs()
        assert log.log_count == 0

    def test_configure_shrinks_history(self):
        log = make_logger(level=Severity.TRACE, max_logs=10)
        for i in range(6):
            log.info(f"m{i}")

        log.configure(LoggerConfig(level=Severity.TRACE, console=False, max_logs=2))

        assert [e.message for e in log.get_logs()] == ["m4", "m5"]


class TestEntries:
    """Tests for entry contents."""

    def test_entry_fields(self):
        log = make_logger(level=Severity.TRACE, environment="development")
        err = ValueError("boom")

        log.error("Failed to save", error=err, metadata={"user_id": "u-1"})

        entry = log.get_logs()[0]
        assert isinstance(entry, LogEntry)
        assert entry.message == "Failed to save"
        assert entry.error is err
        assert entry.metadata["user_id"] == "u-1"
        assert entry.timestamp.endswith("Z")

    def test_source_only_in_development(self):
        dev = make_logger(level=Severity.TRACE, environment="development")
        prod = make_logger(level=Severity.TRACE, environment="staging")

        dev.info("here")
        prod.info("here")

        assert dev.get_logs()[0].source.startswith("test_event_logger.py:")
        assert prod.get_logs()[0].source is None

    def test_stack_captured_for_raised_exception(self):
        log = make_logger(level=Severity.TRACE)
        try:
            raise RuntimeError("bad")
        except RuntimeError as exc:
            log.error("caught", error=exc)

        assert "RuntimeError: bad" in log.get_logs()[0].stack

    def test_non_mapping_metadata_wrapped(self):
        log = make_logger(level=Severity.TRACE)
        log.info("odd", metadata=42)
        assert dict(log.get_logs()[0].metadata) == {"value": 42}

    def test_entries_are_immutable(self):
        log = make_logger(level=Severity.TRACE)
        log.info("x", metadata={"a": 1})
        entry = log.get_logs()[0]

        with pytest.raises(TypeError):
            entry.metadata["a"] = 2

    def test_to_dict_omits_empty_fields(self):
        log = make_logger(level=Severity.TRACE, environment="staging")
        log.info("plain")
        data = log.get_logs()[0].to_dict()
        assert set(data) == {"timestamp", "level", "message"}
        assert data["level"] == "INFO"


class TestContext:
    """Tests for the logger context."""

    def test_context_snapshot(self):
        """Entries keep the context that was active when they were created."""
        log = make_logger(level=Severity.TRACE)
        log.set_context({"user_id": "u-1"})
        log.info("first")
        log.set_context({"request_id": "r-9"})
        log.info("second")

        first, second = log.get_logs()
        assert dict(first.context) == {"user_id": "u-1"}
        assert dict(second.context) == {"user_id": "u-1", "request_id": "r-9"}

    def test_clear_context(self):
        log = make_logger(level=Severity.TRACE)
        log.set_context({"a": 1})
        log.clear_context()
        log.info("x")
        assert log.get_context() == {}
        assert log.get_logs()[0].context is None

    def test_get_context_is_a_copy(self):
        log = make_logger()
        log.set_context({"a": 1})
        log.get_context()["a"] = 2
        assert log.get_context() == {"a": 1}


class TestConsole:
    """Tests for stdlib console mirroring."""

    def test_method_by_severity(self):
        console = Mock()
        log = EventLogger(LoggerConfig(level=Severity.TRACE, environment="staging"), console=console)

        log.fatal("f")
        log.error("e")
        log.warn("w")
        log.info("i")

        assert console.error.call_count == 2
        console.warning.assert_called_once()
        console.info.assert_called_once()

    def test_line_format_and_extras(self):
        console = Mock()
        log = EventLogger(LoggerConfig(level=Severity.TRACE, environment="staging"), console=console)
        log.set_context({"user_id": "u-1"})

        log.error("Save failed", error=ValueError("disk full"), metadata={"attempt": 2})

        args, kwargs = console.error.call_args
        assert args[0].startswith("[ERROR] ")
        assert args[0].endswith("Save failed | Error: disk full")
        assert kwargs["extra"]["log_level"] == "ERROR"
        assert kwargs["extra"]["log_context"] == {"user_id": "u-1"}
        assert kwargs["extra"]["log_metadata"] == {"attempt": 2}
        # Tracebacks only in development
        assert kwargs["exc_info"] is None

    def test_real_stdlib_logger(self, caplog):
        log = EventLogger(LoggerConfig(level=Severity.TRACE, environment="staging"))

        with caplog.at_level("WARNING", logger="eventlog.console"):
            log.warn("careful")

        assert any("[WARN]" in r.getMessage() and "careful" in r.getMessage() for r in caplog.records)

    def test_logging_never_raises(self):
        """A broken console must not break the caller."""
        console = Mock()
        console.error.side_effect = RuntimeError("handler exploded")
        log = EventLogger(LoggerConfig(level=Severity.TRACE), console=console)

        log.error("still fine")

        assert log.log_count == 1


class TestTimers:
    """Tests for performance timers."""

    def test_start_end(self):
        log = make_logger(level=Severity.TRACE, performance_tracking=True)

        log.start_timer("load")
        duration = log.end_timer("load", {"rows": 3})

        assert duration is not None and duration >= 0
        entry = log.get_logs()[-1]
        assert entry.level == Severity.DEBUG
        assert entry.message.startswith("Timer [load]: ")
        assert entry.metadata["rows"] == 3
        assert entry.metadata["duration"].endswith("ms")
        assert log.active_timers == []

    def test_end_unknown_timer_warns(self):
        log = make_logger(level=Severity.TRACE, performance_tracking=True)

        assert log.end_timer("missing") is None

        entry = log.get_logs()[-1]
        assert entry.level == Severity.WARN
        assert entry.message == 'Timer "missing" not found'

    def test_end_twice(self):
        """A timer can only be ended once."""
        log = make_logger(level=Severity.TRACE, performance_tracking=True)
        log.start_timer("once")
        assert log.end_timer("once") is not None
        assert log.end_timer("once") is None

    def test_unhashable_label_does_not_raise(self):
        log = make_logger(level=Severity.TRACE, performance_tracking=True)

        log.start_timer(["x"])

        assert log.active_timers == []
        assert log.end_timer(["x"]) is None

    def test_tracking_disabled(self):
        log = make_logger(level=Severity.TRACE, performance_tracking=False)
        log.start_timer("x")
        assert log.active_timers == []
        assert log.end_timer("x") is None
        assert log.log_count == 0


class TestExport:
    """Tests for log export."""

    def test_export_json(self):
        log = make_logger(level=Severity.TRACE)
        log.info("a")
        log.error("b", error=KeyError("k"))

        data = json.loads(log.export_logs())

        assert [d["message"] for d in data] == ["a", "b"]
        assert data[1]["error"]["name"] == "KeyError"

    def test_export_to_file(self, tmp_path):
        log = make_logger(level=Severity.TRACE)
        log.info("persisted")

        path = log.export_logs_to(tmp_path / "out" / "logs.json")

        assert path is not None
        assert json.loads(path.read_text())[0]["message"] == "persisted"

    def test_export_empty(self):
        assert make_logger().export_logs() == "[]"


class TestForwarding:
    """Production ERROR/FATAL entries go to the telemetry reporter."""

    def test_forwards_errors_in_production(self):
        reporter = Mock()
        log = make_logger(environment="production", level=Severity.WARN)

        with patch("faultcore.telemetry.service.get_telemetry_reporter", return_value=reporter):
            log.error("checkout failed")
            log.fatal("db down")
            log.warn("slow")

        assert reporter.report_entry.call_count == 2

    def test_no_forwarding_outside_production(self):
        reporter = Mock()
        log = make_logger(environment="staging", level=Severity.TRACE)

        with patch("faultcore.telemetry.service.get_telemetry_reporter", return_value=reporter):
            log.error("checkout failed")

        reporter.report_entry.assert_not_called()

    def test_forwarding_failure_swallowed(self):
        reporter = Mock()
        reporter.report_entry.side_effect = RuntimeError("sink down")
        log = make_logger(environment="production", level=Severity.WARN)

        with patch("faultcore.telemetry.service.get_telemetry_reporter", return_value=reporter):
            log.error("checkout failed")

        assert log.log_count == 1


class TestSingleton:
    """Tests for get_event_logger."""

    def test_same_instance(self):
        assert get_event_logger() is get_event_logger()

    def test_config_only_on_creation(self):
        first = get_event_logger(LoggerConfig(level=Severity.ERROR, console=False))
        second = get_event_logger(LoggerConfig(level=Severity.TRACE, console=False))
        assert second is first
        assert second.config.level == Severity.ERROR

    def test_reset(self):
        first = get_event_logger()
        reset_event_logger()
        assert get_event_logger() is not first

    def test_default_from_environment(self, monkeypatch):
        monkeypatch.setenv("FAULTCORE_ENVIRONMENT", "production")
        log = get_event_logger()
        assert log.config.level == Severity.WARN
        assert log.config.is_production
