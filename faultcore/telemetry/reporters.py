"""
telemetry/reporters.py - Telemetry sink backends

Every backend implements ReporterBackend, so the TelemetryReporter can
swap sinks from configuration and tests can inject mocks.

Delivery is best-effort and at most once. Backends never raise from
``report``.
"""

from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Optional, Protocol, Set, runtime_checkable
import asyncio
import json
import logging

import httpx

from .config import DEFAULT_TIMEOUT_SECONDS, TelemetryConfig
from .models import ErrorReport, ReportEnvelope, ReportUser

logger = logging.getLogger("telemetry.reporter")


def _event_logger():
    from faultcore.eventlog.logger import get_event_logger
    return get_event_logger()


@runtime_checkable
class ReporterBackend(Protocol):
    """Protocol for telemetry sinks."""

    def initialize(self) -> bool:
        """Prepare the sink. Returns True when it is ready to accept reports."""
        ...

    def report(self, report: ErrorReport) -> None:
        """Forward one report. Must not raise."""
        ...

    def set_user(self, user: Optional[ReportUser]) -> None:
        ...


# =============================================================================
# Sentry
# =============================================================================

class SentryReporter:
    """
    Sentry sink backed by ``sentry_sdk``.

    The SDK is an optional extra (``pip install faultcore[sentry]``).
    Pass ``client`` to use a preconfigured SDK-like object instead.
    """

    def __init__(self, config: TelemetryConfig, client: Any = None):
        self.config = config
        self._client = client
        self.initialized = False

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        import sentry_sdk
        self._client = sentry_sdk
        return self._client

    def initialize(self) -> bool:
        if self.initialized:
            return True
        if not self.config.sentry_dsn:
            return False

        try:
            client = self._get_client()
        except ImportError:
            logger.error("sentry-sdk is not installed. Run: pip install 'faultcore[sentry]'")
            return False

        try:
            client.init(
                dsn=self.config.sentry_dsn,
                environment=self.config.environment,
                release=self.config.release,
                # Sampling already happened in TelemetryReporter
                sample_rate=1.0,
                traces_sample_rate=0.1,
                before_send=scrub_event,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}")
            return False

        self.initialized = True
        _event_logger().info(
            "Sentry error reporting initialized",
            metadata={"environment": self.config.environment},
        )
        return True

    def report(self, report: ErrorReport) -> None:
        if not self.initialized:
            return

        scope_kwargs = {
            "level": report.level,
            "tags": dict(report.tags),
            "extras": dict(report.context),
        }
        try:
            if report.error is not None:
                self._client.capture_exception(report.error, **scope_kwargs)
            else:
                self._client.capture_message(report.message, **scope_kwargs)
        except Exception as e:
            _event_logger().warn(
                "Failed to report error to Sentry",
                metadata={"error": str(e)},
            )

    def set_user(self, user: Optional[ReportUser]) -> None:
        if not self.initialized:
            return
        try:
            self._client.set_user(user.model_dump(exclude_none=True) if user else None)
        except Exception as e:
            _event_logger().warn("Failed to set Sentry user", metadata={"error": str(e)})

    def flush(self, timeout: Optional[float] = None) -> None:
        if self.initialized:
            self._client.flush(timeout=timeout)


def scrub_event(event: Dict[str, Any], hint: Any = None) -> Dict[str, Any]:
    """Drop cookies and headers from outgoing Sentry events."""
    request = event.get("request")
    if isinstance(request, dict):
        request.pop("cookies", None)
        request.pop("headers", None)
    return event


# =============================================================================
# CloudWatch
# =============================================================================

class CloudWatchReporter:
    """
    Log-collector sink.

    Writes each report as one JSON line on the ``telemetry.cloudwatch``
    logger. The platform's log agent ships it. No client calls.
    """

    LEVELS = {
        "fatal": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
    }

    def __init__(self, config: Optional[TelemetryConfig] = None, sink: Optional[logging.Logger] = None):
        self.config = config
        self.sink = sink or logging.getLogger("telemetry.cloudwatch")
        self._user: Optional[ReportUser] = None

    def initialize(self) -> bool:
        _event_logger().info("CloudWatch error reporting configured")
        return True

    def report(self, report: ErrorReport) -> None:
        try:
            line = json.dumps(ReportEnvelope.from_report(report, self._user).to_payload(), sort_keys=True)
            self.sink.log(self.LEVELS.get(report.level, logging.ERROR), line)
        except Exception as e:
            logger.error(f"Failed to write CloudWatch report line: {e}")

    def set_user(self, user: Optional[ReportUser]) -> None:
        self._user = user


# =============================================================================
# Custom endpoint
# =============================================================================

class CustomEndpointReporter:
    """
    JSON-over-HTTP sink.

    One POST per report, no retry. Runs as an asyncio task when called
    from a running loop, otherwise on a single background worker thread.
    """

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._async_transport = async_transport
        self._client: Optional[httpx.Client] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._tasks: Set[asyncio.Task] = set()
        self._futures: Set[Future] = set()
        self._user: Optional[ReportUser] = None

    def initialize(self) -> bool:
        _event_logger().info(
            "Custom error reporting endpoint configured",
            metadata={"endpoint": self.endpoint},
        )
        return bool(self.endpoint)

    def set_user(self, user: Optional[ReportUser]) -> None:
        self._user = user

    def build_payload(self, report: ErrorReport) -> Dict[str, Any]:
        return ReportEnvelope.from_report(report, self._user).to_payload()

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout_seconds, transport=self._transport)
        return self._client

    def _warn(self, message: str, error: Any) -> None:
        _event_logger().warn(message, metadata={"error": str(error), "endpoint": self.endpoint})

    def send(self, report: ErrorReport) -> bool:
        """Blocking POST. Returns True on a 2xx response."""
        try:
            payload = self.build_payload(report)
            response = self._get_client().post(self.endpoint, json=payload)
            response.raise_for_status()
            return True
        except Exception as e:
            self._warn("Failed to report error to custom endpoint", e)
            return False

    async def asend(self, report: ErrorReport) -> bool:
        """Async POST. Returns True on a 2xx response."""
        try:
            payload = self.build_payload(report)
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._async_transport,
            ) as client:
                response = await client.post(self.endpoint, json=payload)
                response.raise_for_status()
            return True
        except Exception as e:
            self._warn("Failed to report error to custom endpoint", e)
            return False

    def report(self, report: ErrorReport) -> None:
        """Fire and forget."""
        if not self.endpoint:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        try:
            if loop is not None:
                task = loop.create_task(self.asend(report))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telemetry")
                future = self._executor.submit(self.send, report)
                self._futures.add(future)
                future.add_done_callback(self._futures.discard)
        except Exception as e:
            logger.error(f"Could not schedule telemetry post: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks) + len(self._futures)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for background-thread posts."""
        if self._futures:
            wait(list(self._futures), timeout=timeout)

    async def drain(self) -> None:
        """Await in-flight asyncio posts."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._client is not None:
            self._client.close()
            self._client = None
