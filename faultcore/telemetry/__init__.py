"""
faultcore.telemetry - Error reporting to external sinks

Sampled, fire-and-forget forwarding to Sentry, a log collector or a
custom JSON endpoint.
"""

from .config import (
    ReportingService,
    TelemetryConfig,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_TIMEOUT_SECONDS,
    parse_sample_rate,
    parse_service,
)

from .models import (
    ErrorReport,
    ReportUser,
    ReportedError,
    ReportEnvelope,
)

from .reporters import (
    ReporterBackend,
    SentryReporter,
    CloudWatchReporter,
    CustomEndpointReporter,
)

from .service import (
    TelemetryReporter,
    get_telemetry_reporter,
    set_telemetry_reporter,
    reset_telemetry_reporter,
    report_error,
    report_warning,
    report_info,
    set_error_reporting_user,
)

__all__ = [
    # Config
    "ReportingService",
    "TelemetryConfig",
    "DEFAULT_SAMPLE_RATE",
    "DEFAULT_TIMEOUT_SECONDS",
    "parse_sample_rate",
    "parse_service",
    # Models
    "ErrorReport",
    "ReportUser",
    "ReportedError",
    "ReportEnvelope",
    # Backends
    "ReporterBackend",
    "SentryReporter",
    "CloudWatchReporter",
    "CustomEndpointReporter",
    # Service
    "TelemetryReporter",
    "get_telemetry_reporter",
    "set_telemetry_reporter",
    "reset_telemetry_reporter",
    "report_error",
    "report_warning",
    "report_info",
    "set_error_reporting_user",
]
