"""
telemetry/service.py - Telemetry reporter

Sampled forwarding of error reports to the configured sink. The sink is
picked once by ``initialize()``; every report after that either goes to
it or is dropped by sampling.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, Union, TYPE_CHECKING
import inspect
import logging
import random
import threading

from .config import ReportingService, TelemetryConfig
from .models import ErrorReport, ReportLevel, ReportUser
from .reporters import (
    CloudWatchReporter,
    CustomEndpointReporter,
    ReporterBackend,
    SentryReporter,
)

if TYPE_CHECKING:
    from faultcore.errors.taxonomy import ErrorDetails
    from faultcore.eventlog.entry import LogEntry

logger = logging.getLogger("telemetry.reporter")

UserLike = Union[ReportUser, Mapping[str, Any], None]


def _coerce_user(user: UserLike) -> Optional[ReportUser]:
    if user is None or isinstance(user, ReportUser):
        return user
    return ReportUser(**{k: (str(v) if v is not None else None) for k, v in dict(user).items()})


class TelemetryReporter:
    """
    Forwards error reports to one sink.

    Usage:
        reporter = TelemetryReporter(config)
        reporter.initialize()
        reporter.report(ErrorReport(message="Checkout failed", error=exc))
    """

    def __init__(
        self,
        config: Optional[TelemetryConfig] = None,
        backend: Optional[ReporterBackend] = None,
        rng: Callable[[], float] = random.random,
    ):
        self.config = config or TelemetryConfig()
        self._backend = backend
        self._rng = rng
        self._user: Optional[ReportUser] = None
        self.initialized = False

        # Counters for diagnostics
        self.forwarded_count = 0
        self.sampled_out_count = 0

    @property
    def backend(self) -> Optional[ReporterBackend]:
        return self._backend

    def _build_backend(self) -> Optional[ReporterBackend]:
        service = self.config.effective_service
        if service != self.config.service:
            logger.warning(
                f"Reporting service '{self.config.service.value}' is missing its DSN or endpoint, "
                "reporting disabled"
            )
        if service == ReportingService.SENTRY:
            return SentryReporter(self.config)
        if service == ReportingService.CLOUDWATCH:
            return CloudWatchReporter(self.config)
        if service == ReportingService.CUSTOM:
            return CustomEndpointReporter(self.config.endpoint, timeout_seconds=self.config.timeout_seconds)
        return None

    def initialize(self) -> bool:
        """
        Pick and prepare the sink. Idempotent.

        Returns True once a backend is ready.
        """
        if self.initialized:
            return self._backend is not None
        if not self.config.enabled:
            logger.debug("Error reporting disabled")
            return False

        try:
            if self._backend is None:
                self._backend = self._build_backend()
            if self._backend is None:
                logger.info(f"No error reporting service configured ({self.config.service.value})")
                self.initialized = True
                return False

            if not self._backend.initialize():
                logger.error(f"Reporting backend {type(self._backend).__name__} failed to initialize")
                self._backend = None
                self.initialized = True
                return False

            if self._user is not None:
                self._backend.set_user(self._user)
        except Exception as e:
            logger.error(f"Failed to initialize error reporting: {e}")
            self._backend = None
            return False

        self.initialized = True
        return True

    def should_sample(self) -> bool:
        """A uniform draw below ``sample_rate`` keeps the report."""
        return self._rng() < self.config.sample_rate

    def report(self, report: ErrorReport) -> bool:
        """
        Forward ``report`` if enabled and sampled in.

        Returns True when the report was handed to the backend.
        """
        if not self.config.enabled or self._backend is None:
            logger.debug("Error reporting skipped (disabled or no backend)")
            return False

        if not self.should_sample():
            self.sampled_out_count += 1
            logger.debug(f"Error reporting skipped (sample rate {self.config.sample_rate})")
            return False

        try:
            self._backend.report(report)
        except Exception as e:
            logger.error(f"Reporting backend raised: {e}")
            return False

        self.forwarded_count += 1
        return True

    def report_from_details(self, details: "ErrorDetails", level: ReportLevel = "error") -> bool:
        return self.report(
            ErrorReport(
                message=details.message,
                level=level,
                context=dict(details.context),
                tags={
                    "code": details.code or "UNKNOWN",
                    "status_code": str(details.status_code or ""),
                },
            )
        )

    def report_entry(self, entry: "LogEntry") -> bool:
        """Forward an EventLogger entry."""
        from faultcore.eventlog.levels import Severity

        context: Dict[str, Any] = dict(entry.context or {})
        if entry.metadata:
            context["metadata"] = dict(entry.metadata)
        if entry.source:
            context["source"] = entry.source

        return self.report(
            ErrorReport(
                message=entry.message,
                level="fatal" if entry.level == Severity.FATAL else "error",
                error=entry.error if isinstance(entry.error, BaseException) else None,
                context=context,
                tags={"logger_level": entry.level.name},
            )
        )

    def set_user(self, user: UserLike) -> None:
        self._user = _coerce_user(user)
        if self._backend is not None:
            try:
                self._backend.set_user(self._user)
            except Exception as e:
                logger.error(f"Reporting backend failed to set user: {e}")

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until background posts finish or ``timeout`` elapses."""
        flush = getattr(self._backend, "flush", None)
        if flush is not None:
            flush(timeout)

    async def drain(self) -> None:
        """Await in-flight asyncio posts."""
        drain = getattr(self._backend, "drain", None)
        if drain is not None:
            result = drain()
            if inspect.isawaitable(result):
                await result

    def close(self) -> None:
        close = getattr(self._backend, "close", None)
        if close is not None:
            close()


# =============================================================================
# Singleton and helpers
# =============================================================================

_reporter: Optional[TelemetryReporter] = None
_reporter_lock = threading.Lock()


def _default_config() -> TelemetryConfig:
    from faultcore.bootstrap.config import get_config
    return get_config().telemetry


def get_telemetry_reporter(config: Optional[TelemetryConfig] = None) -> TelemetryReporter:
    """Process-wide reporter, initialized on first use when reporting is enabled."""
    global _reporter
    if _reporter is None:
        with _reporter_lock:
            if _reporter is None:
                reporter = TelemetryReporter(config or _default_config())
                if reporter.config.enabled:
                    reporter.initialize()
                _reporter = reporter
    return _reporter


def set_telemetry_reporter(reporter: Optional[TelemetryReporter]) -> None:
    """Replace the singleton (wiring and tests)."""
    global _reporter
    with _reporter_lock:
        _reporter = reporter


def reset_telemetry_reporter() -> None:
    set_telemetry_reporter(None)


def report_error(error: BaseException, context: Optional[Mapping[str, Any]] = None) -> bool:
    return get_telemetry_reporter().report(
        ErrorReport(message=str(error) or type(error).__name__, level="error", error=error, context=dict(context or {}))
    )


def report_warning(message: str, context: Optional[Mapping[str, Any]] = None) -> bool:
    return get_telemetry_reporter().report(
        ErrorReport(message=message, level="warning", context=dict(context or {}))
    )


def report_info(message: str, context: Optional[Mapping[str, Any]] = None) -> bool:
    return get_telemetry_reporter().report(
        ErrorReport(message=message, level="info", context=dict(context or {}))
    )


def set_error_reporting_user(user: UserLike) -> None:
    get_telemetry_reporter().set_user(user)
