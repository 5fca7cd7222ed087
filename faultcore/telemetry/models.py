"""
telemetry/models.py - Telemetry payload models
"""

from __future__ import annotations
from typing import Any, Dict, Literal, Optional
import json
import platform
import traceback

from pydantic import BaseModel, ConfigDict, Field

from faultcore.eventlog.entry import format_timestamp


ReportLevel = Literal["fatal", "error", "warning", "info"]


class ReportUser(BaseModel):
    """User attached to reports."""
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None


class ErrorReport(BaseModel):
    """One report handed to the TelemetryReporter."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: str
    level: ReportLevel = "error"
    error: Optional[BaseException] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)
    user: Optional[ReportUser] = None


class ReportedError(BaseModel):
    message: str
    stack: Optional[str] = None
    name: str

    @classmethod
    def from_exception(cls, error: BaseException) -> "ReportedError":
        stack = None
        if error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return cls(message=str(error), stack=stack, name=type(error).__name__)


def default_user_agent() -> str:
    from faultcore import __version__
    return f"faultcore/{__version__} python/{platform.python_version()}"


class ReportEnvelope(BaseModel):
    """JSON body POSTed to a custom endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    level: ReportLevel
    error: Optional[ReportedError] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)
    user: Optional[ReportUser] = None
    timestamp: str = Field(default_factory=format_timestamp)
    url: Optional[str] = None
    user_agent: str = Field(default_factory=default_user_agent, alias="userAgent")

    @classmethod
    def from_report(cls, report: ErrorReport, user: Optional[ReportUser] = None) -> "ReportEnvelope":
        return cls(
            message=report.message,
            level=report.level,
            error=ReportedError.from_exception(report.error) if report.error is not None else None,
            context=jsonable(report.context),
            tags=report.tags,
            user=report.user or user,
            url=_url_from_context(report.context),
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` with non-JSON values rendered through str()."""
    return json.loads(json.dumps(data, default=str))


def _url_from_context(context: Dict[str, Any]) -> Optional[str]:
    url = context.get("url")
    return str(url) if url else None
