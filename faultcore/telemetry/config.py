"""
telemetry/config.py - Telemetry sink configuration
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
import logging
import math
import os

logger = logging.getLogger("telemetry.config")

DEFAULT_SAMPLE_RATE = 1.0
DEFAULT_TIMEOUT_SECONDS = 4.0


class ReportingService(Enum):
    """Which sink receives reports."""
    NONE = "none"
    SENTRY = "sentry"
    CLOUDWATCH = "cloudwatch"
    CUSTOM = "custom"


def parse_service(value: Any) -> ReportingService:
    """Parse a service name. Unknown names fall back to NONE with a warning."""
    if isinstance(value, ReportingService):
        return value
    name = str(value or "none").strip().lower()
    try:
        return ReportingService(name)
    except ValueError:
        logger.warning(f"Unknown reporting service '{value}', reporting disabled")
        return ReportingService.NONE


def parse_sample_rate(value: Any) -> float:
    """Parse a sample rate in [0, 1]. Anything else falls back to 1.0 with a warning."""
    try:
        rate = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid error sample rate '{value}', using {DEFAULT_SAMPLE_RATE}")
        return DEFAULT_SAMPLE_RATE
    if math.isnan(rate) or rate < 0.0 or rate > 1.0:
        logger.warning(f"Error sample rate {value} outside [0, 1], using {DEFAULT_SAMPLE_RATE}")
        return DEFAULT_SAMPLE_RATE
    return rate


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TelemetryConfig:
    """Telemetry reporter settings."""

    enabled: bool = False
    service: ReportingService = ReportingService.NONE
    sentry_dsn: Optional[str] = None
    endpoint: Optional[str] = None
    environment: str = "development"
    release: Optional[str] = None
    sample_rate: float = DEFAULT_SAMPLE_RATE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self):
        self.service = parse_service(self.service)
        self.sample_rate = parse_sample_rate(self.sample_rate)

    @property
    def effective_service(self) -> ReportingService:
        """Configured service, or NONE when its DSN or endpoint is missing."""
        if self.service == ReportingService.SENTRY and not self.sentry_dsn:
            return ReportingService.NONE
        if self.service == ReportingService.CUSTOM and not self.endpoint:
            return ReportingService.NONE
        return self.service

    @classmethod
    def from_env(cls, environment: Optional[str] = None) -> "TelemetryConfig":
        env = environment or os.getenv("FAULTCORE_ENVIRONMENT", "development")
        is_production = env.strip().lower() in ("production", "prod")
        timeout_raw = os.getenv("FAULTCORE_REPORTING_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout = float(timeout_raw)
        except ValueError:
            logger.warning(f"Invalid reporting timeout '{timeout_raw}', using {DEFAULT_TIMEOUT_SECONDS}")
            timeout = DEFAULT_TIMEOUT_SECONDS

        return cls(
            enabled=_env_flag("FAULTCORE_REPORTING_ENABLED", is_production),
            service=os.getenv("FAULTCORE_REPORTING_SERVICE", "none"),
            sentry_dsn=os.getenv("FAULTCORE_SENTRY_DSN") or None,
            endpoint=os.getenv("FAULTCORE_REPORTING_ENDPOINT") or None,
            environment=env,
            release=os.getenv("FAULTCORE_RELEASE") or None,
            sample_rate=os.getenv("FAULTCORE_ERROR_SAMPLE_RATE", str(DEFAULT_SAMPLE_RATE)),
            timeout_seconds=timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "service": self.service.value,
            "effective_service": self.effective_service.value,
            "endpoint": self.endpoint,
            "environment": self.environment,
            "release": self.release,
            "sample_rate": self.sample_rate,
            "timeout_seconds": self.timeout_seconds,
            # DSN is a credential
            "sentry_dsn_configured": bool(self.sentry_dsn),
        }
