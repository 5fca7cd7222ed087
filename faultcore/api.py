"""
api.py - Monitoring REST API

FastAPI router over the event log history and error statistics, a
client-side error ingestion endpoint, and exception handlers that answer
typed faults with a recovery decision.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import asyncio
import json
import logging

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, field_validator

from faultcore.errors import interception
from faultcore.errors.decision import RecoveryAction, RecoveryDecision
from faultcore.errors.recovery import GENERIC_FAILURE_MESSAGE, get_recovery_dispatcher
from faultcore.errors.statistics import get_error_statistics
from faultcore.errors.strategies import get_strategy_registry
from faultcore.errors.taxonomy import AppFault
from faultcore.eventlog.context import with_context
from faultcore.eventlog.levels import Severity
from faultcore.eventlog.logger import get_event_logger

if TYPE_CHECKING:
    from faultcore.bootstrap.config import FaultcoreConfig

logger = logging.getLogger("faultcore.api")

__all__ = [
    "ClientErrorReport",
    "create_monitoring_router",
    "install_exception_handlers",
    "create_app",
]


# =============================================================================
# Request Models
# =============================================================================

class ClientErrorReport(BaseModel):
    """Error captured by a client and posted for logging."""

    message: str
    name: Optional[str] = None
    stack: Optional[str] = None
    code: Optional[str] = None
    status_code: Optional[int] = None
    url: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        if not v or not v.strip():
            raise ValueError("message must not be empty")
        return v


def _jsonable(data: Any) -> Any:
    return json.loads(json.dumps(data, default=str))


# =============================================================================
# Router
# =============================================================================

def create_monitoring_router() -> APIRouter:
    """
    Create the monitoring router.

    Returns:
        FastAPI APIRouter mounted under /api/v1/monitoring
    """
    router = APIRouter(
        prefix="/api/v1/monitoring",
        tags=["monitoring"],
    )

    @router.get("/logs")
    async def list_logs(
        level: Optional[str] = Query(None, description="Only entries at this severity"),
    ) -> List[Dict[str, Any]]:
        """Stored log entries, oldest first."""
        entries = get_event_logger().get_logs()
        if level is not None:
            severity = Severity.parse(level)
            if severity is None:
                raise HTTPException(status_code=400, detail=f"Unknown log level: {level}")
            entries = [e for e in entries if e.level == severity]
        return _jsonable([e.to_dict() for e in entries])

    @router.get("/logs/export")
    async def export_logs() -> Response:
        return Response(
            content=get_event_logger().export_logs(),
            media_type="application/json",
            headers={"Content-Disposition": 'attachment; filename="logs.json"'},
        )

    @router.delete("/logs")
    async def clear_logs() -> Dict[str, Any]:
        log = get_event_logger()
        cleared = log.log_count
        log.clear_logs()
        return {"cleared": cleared}

    @router.get("/errors/statistics")
    async def error_statistics() -> Dict[str, Any]:
        return _jsonable(get_error_statistics().to_dict())

    @router.post("/errors")
    async def ingest_client_error(report: ClientErrorReport) -> Dict[str, Any]:
        """Log a client-side error and answer with a recovery decision."""
        log = get_event_logger()
        payload = report.model_dump(exclude_none=True)

        with with_context({"source": "client", **report.context}, logger=log):
            log.error(
                f"Client error: {report.message}",
                metadata={
                    "name": report.name,
                    "code": report.code,
                    "status_code": report.status_code,
                    "url": report.url,
                    "stack": report.stack,
                },
            )

        decision = get_strategy_registry().handle(payload)
        if decision is None:
            decision = RecoveryDecision(
                handled=True,
                user_message=GENERIC_FAILURE_MESSAGE,
                action=RecoveryAction.CONTACT_SUPPORT,
            )
        return _jsonable(decision.to_dict())

    return router


# =============================================================================
# Exception Handlers
# =============================================================================

def install_exception_handlers(app: FastAPI) -> None:
    """Answer uncaught AppFault subclasses with ``{error, decision}``."""

    @app.exception_handler(AppFault)
    async def app_fault_handler(request: Request, exc: AppFault) -> JSONResponse:
        with with_context({"method": request.method, "path": request.url.path}):
            decision = get_recovery_dispatcher().resolve(exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=_jsonable({
                "error": exc.to_dict(),
                "decision": decision.to_dict(),
            }),
        )


def create_app(config: Optional["FaultcoreConfig"] = None) -> FastAPI:
    """
    Create FastAPI application with the monitoring router.

    Args:
        config: Optional configuration; the global one is used otherwise

    Returns:
        FastAPI application instance
    """
    from faultcore import __version__
    from faultcore.bootstrap.config import get_config

    config = config or get_config()
    enable_docs = config.api.enable_docs

    app = FastAPI(
        title="faultcore monitoring",
        description="Event log and error statistics API",
        version=__version__,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
    )

    app.include_router(create_monitoring_router())
    install_exception_handlers(app)

    @app.on_event("startup")
    async def hook_event_loop():
        # Failed tasks on the server loop go to the event log
        interception.install(asyncio.get_running_loop())
        logger.info("Monitoring API started, event loop hooked")

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "version": __version__,
            "environment": config.environment,
            "log_count": get_event_logger().log_count,
        }

    logger.debug("Monitoring app created")
    return app
