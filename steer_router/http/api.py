"""FastAPI routes for the routing service.

The boundary is thin: read JSON, validate, call the core, return JSON.
Collaborators come from ``app.state`` so tests and the composition root can
inject them.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from ..core.planning.builder import PlanBuilder
from ..errors import PayloadValidationError, PlanNotFoundError
from ..models.task import parse_semantic_task
from ..storage.base import PlanStore
from ..telemetry.handler import TelemetryHandler

CORRELATION_HEADER = "x-correlation-id"

router = APIRouter()


def get_plan_builder(request: Request) -> PlanBuilder:
    return request.app.state.plan_builder


def get_plan_store(request: Request) -> PlanStore:
    return request.app.state.plan_store


def get_telemetry_handler(request: Request) -> TelemetryHandler:
    return request.app.state.telemetry_handler


async def read_json(request: Request) -> Any:
    """Parse the request body as JSON.

    Raises:
        PayloadValidationError: If the body is empty or not valid JSON
    """
    raw = await request.body()
    if not raw.strip():
        raise PayloadValidationError("Request body is required", ["Body must be a JSON object."])
    try:
        return json.loads(raw)
    except ValueError:
        raise PayloadValidationError("Malformed JSON body", ["Body must be valid JSON."])


def correlation_id_from_body(payload: Any) -> Optional[str]:
    """``context.correlationId`` of a task payload, when present and non-blank."""
    if not isinstance(payload, dict):
        return None
    context = payload.get("context")
    if not isinstance(context, dict):
        return None
    value = context.get("correlationId")
    if isinstance(value, str) and value.strip():
        return value
    return None


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": request.app.state.service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/v1/plan")
async def create_plan(
    request: Request,
    response: Response,
    plan_builder: PlanBuilder = Depends(get_plan_builder)
) -> Dict[str, Any]:
    """Build a TaskRoutingPlan from a SemanticTask payload."""
    payload = await read_json(request)

    # Header wins; otherwise the task's own correlation id is adopted
    if not request.state.correlation_id_from_header:
        body_id = correlation_id_from_body(payload)
        if body_id:
            request.state.correlation_id = body_id
    response.headers[CORRELATION_HEADER] = request.state.correlation_id

    task = parse_semantic_task(payload)
    plan = await plan_builder.build_plan(task)
    return plan.to_document()


@router.get("/v1/plan/{plan_id}")
async def get_plan(
    plan_id: str,
    plan_store: PlanStore = Depends(get_plan_store)
) -> Dict[str, Any]:
    document = await plan_store.get_plan(plan_id)
    if document is None:
        raise PlanNotFoundError(plan_id)
    return document


@router.post("/v1/telemetry/execution", status_code=status.HTTP_202_ACCEPTED)
async def execution_telemetry(
    request: Request,
    handler: TelemetryHandler = Depends(get_telemetry_handler)
) -> Dict[str, str]:
    await handler.handle_execution_telemetry(await read_json(request))
    return {"status": "accepted"}


@router.post("/v1/telemetry/feedback", status_code=status.HTTP_202_ACCEPTED)
async def feedback_telemetry(
    request: Request,
    handler: TelemetryHandler = Depends(get_telemetry_handler)
) -> Dict[str, str]:
    await handler.handle_feedback_telemetry(await read_json(request))
    return {"status": "accepted"}
