"""FastAPI application factory.

``create_app`` wires injected collaborators into ``app.state``, installs the
correlation id middleware and maps router errors to the standard error
envelope. Collaborators that are not provided are replaced by stubs that
raise ConfigurationError, so a half-wired app fails loudly per request
instead of at import time.
"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..core.planning.builder import PlanBuilder
from ..errors import (
    ConfigurationError,
    NoCandidatesError,
    PayloadValidationError,
    PlanNotFoundError,
    RouterError,
)
from ..observability.logging import RouterLogger
from ..storage.base import PlanStore
from ..telemetry.handler import TelemetryHandler
from .api import CORRELATION_HEADER, router
from .errors import (
    INTERNAL_SERVER_ERROR,
    NO_CANDIDATES,
    NOT_FOUND,
    PLAN_NOT_FOUND,
    VALIDATION_ERROR,
    build_error_envelope,
)

logger = RouterLogger("http")


@dataclass
class AppDeps:
    """Collaborators served by the HTTP layer."""
    plan_builder: Optional[PlanBuilder] = None
    telemetry_handler: Optional[TelemetryHandler] = None
    plan_store: Optional[PlanStore] = None
    service_name: str = "steer-router"


class _UnconfiguredPlanBuilder:
    async def build_plan(self, task: Any) -> Any:
        raise ConfigurationError("PlanBuilder")


class _UnconfiguredTelemetryHandler:
    async def handle_execution_telemetry(self, payload: Any) -> None:
        raise ConfigurationError("TelemetryHandler")

    async def handle_feedback_telemetry(self, payload: Any) -> None:
        raise ConfigurationError("TelemetryHandler")


class _UnconfiguredPlanStore:
    async def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        raise ConfigurationError("PlanStore")


def _correlation_id(request: Request) -> Optional[str]:
    return getattr(request.state, "correlation_id", None)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    issues: Optional[List[str]] = None,
    details: Any = None
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    headers = {CORRELATION_HEADER: correlation_id} if correlation_id else None
    return JSONResponse(
        status_code=status_code,
        content=build_error_envelope(code, message, correlation_id, issues, details),
        headers=headers,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PayloadValidationError)
    async def validation_error(request: Request, exc: PayloadValidationError):
        logger.debug(
            "Payload validation failed",
            correlation_id=_correlation_id(request),
            issues=len(exc.issues)
        )
        return _error_response(request, 400, VALIDATION_ERROR, str(exc), issues=exc.issues)

    @app.exception_handler(NoCandidatesError)
    async def no_candidates(request: Request, exc: NoCandidatesError):
        logger.info(
            "No candidates",
            tenant=exc.tenant_id,
            capability=exc.capability,
            correlation_id=_correlation_id(request)
        )
        return _error_response(
            request, 422, NO_CANDIDATES, str(exc),
            details={"tenantId": exc.tenant_id, "capability": exc.capability},
        )

    @app.exception_handler(PlanNotFoundError)
    async def plan_not_found(request: Request, exc: PlanNotFoundError):
        return _error_response(
            request, 404, PLAN_NOT_FOUND, str(exc), details={"planId": exc.plan_id}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error_response(
                request, 404, NOT_FOUND, f"Route {request.method} {request.url.path} not found"
            )
        return _error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(RouterError)
    async def router_error(request: Request, exc: RouterError):
        logger.error("Router error", correlation_id=_correlation_id(request), error=exc)
        details = {"component": exc.component} if isinstance(exc, ConfigurationError) else None
        return _error_response(
            request, 500, INTERNAL_SERVER_ERROR, "An unexpected error occurred.", details=details
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(
            "Unhandled error in request pipeline",
            correlation_id=_correlation_id(request),
            error=exc
        )
        return _error_response(request, 500, INTERNAL_SERVER_ERROR, "An unexpected error occurred.")


def create_app(
    deps: Optional[AppDeps] = None,
    shutdown: Optional[Callable[[], Awaitable[None]]] = None
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        deps: Collaborators to serve; missing ones fail with ConfigurationError
        shutdown: Awaited once when the application stops
    """
    deps = deps or AppDeps()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if shutdown is not None:
            await shutdown()

    app = FastAPI(title="Steer Router", version=__version__, lifespan=lifespan)
    app.state.plan_builder = deps.plan_builder or _UnconfiguredPlanBuilder()
    app.state.telemetry_handler = deps.telemetry_handler or _UnconfiguredTelemetryHandler()
    app.state.plan_store = deps.plan_store or _UnconfiguredPlanStore()
    app.state.service_name = deps.service_name

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        header = request.headers.get(CORRELATION_HEADER, "")
        request.state.correlation_id_from_header = bool(header.strip())
        request.state.correlation_id = header if header.strip() else str(uuid.uuid4())

        logger.debug(
            f"{request.method} {request.url.path}",
            correlation_id=request.state.correlation_id
        )
        response = await call_next(request)
        response.headers.setdefault(CORRELATION_HEADER, request.state.correlation_id)
        return response

    _register_exception_handlers(app)
    app.include_router(router)
    return app
