"""
faultcore test configuration and fixtures.

Every test starts with fresh singletons and no FAULTCORE_* environment.
"""

import os

import pytest

from faultcore.bootstrap.app import reset_core
from faultcore.bootstrap.config import reset_config
from faultcore.errors import interception
from faultcore.errors.recovery import reset_recovery_dispatcher
from faultcore.errors.strategies import reset_strategy_registry
from faultcore.eventlog.config import LoggerConfig
from faultcore.eventlog.levels import Severity
from faultcore.eventlog.logger import get_event_logger, reset_event_logger
from faultcore.telemetry.service import reset_telemetry_reporter


def _reset_singletons():
    interception.uninstall()
    reset_event_logger()
    reset_strategy_registry()
    reset_recovery_dispatcher()
    reset_telemetry_reporter()
    reset_config()
    reset_core()


@pytest.fixture(autouse=True)
def clean_core(monkeypatch):
    """Fresh singletons and a clean environment for each test."""
    for name in list(os.environ):
        if name.startswith("FAULTCORE_"):
            monkeypatch.delenv(name, raising=False)
    _reset_singletons()
    yield
    _reset_singletons()


@pytest.fixture
def event_logger():
    """Development EventLogger at TRACE with console mirroring off."""
    return get_event_logger(
        LoggerConfig(
            environment="development",
            level=Severity.TRACE,
            console=False,
        )
    )


@pytest.fixture
def production_logger():
    """Production EventLogger (WARN threshold), console off."""
    return get_event_logger(
        LoggerConfig(
            environment="production",
            level=Severity.WARN,
            console=False,
        )
    )
