"""
Task Routing Plan (TRP) models.

The plan is the router's output and audit record. It tells the orchestrator
which tool to call first, which one to fall back to, and how to move between
steps. Documents are serialised with camelCase keys and without unset
optional fields.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..config.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BACKOFF_INITIAL_MS,
    DEFAULT_MAX_ATTEMPTS_PER_STEP,
    DELETE_OUTPUT_AFTER_MS,
    SERVICE_TOKEN_AUDIENCE,
    SERVICE_TOKEN_REF,
)
from .scoring import CandidateScore
from .task import Requester, TaskConstraints, TaskContext, TaskGoal
from .tool import ToolEndpoint

TerminateStatus = Literal["timeout", "failure"]


class _PlanModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _empty_object_schema() -> Dict[str, Any]:
    return {"type": "object", "required": [], "properties": {}}


class CoordinatorInfo(_PlanModel):
    """Identity of the router instance that built the plan."""

    service: str
    version: str
    instance: Optional[str] = None


class PlanContext(TaskContext):
    """Task context with the requester embedded."""

    requester: Requester


class PlanPolicy(_PlanModel):
    """Policy evaluation result. Always ``allow`` until a policy engine is plugged in."""

    preconditions_passed: bool = True
    policy_decision: Literal["allow", "deny"] = "allow"
    post_conditions: Optional[Dict[str, Any]] = Field(default_factory=_empty_object_schema)


class PlanSelection(_PlanModel):
    tool_id: str
    reason: str
    rank: int = Field(..., ge=1)


class BackoffConfig(_PlanModel):
    type: Literal["exponential", "fixed"] = "exponential"
    initial_ms: int = DEFAULT_BACKOFF_INITIAL_MS
    factor: Optional[float] = DEFAULT_BACKOFF_FACTOR
    jitter: Optional[bool] = True


class RetryPolicy(_PlanModel):
    """Retry hints for the orchestrator's tool invocations."""

    max_attempts_per_step: int = DEFAULT_MAX_ATTEMPTS_PER_STEP
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)


class CallbackConfig(_PlanModel):
    type: Literal["none"] = "none"


class TelemetryCallbacks(_PlanModel):
    progress: Optional[CallbackConfig] = Field(default_factory=CallbackConfig)
    completion: Optional[CallbackConfig] = Field(default_factory=CallbackConfig)


class TelemetryConfig(_PlanModel):
    emit_trace_events: bool = True
    metrics_labels: Optional[Dict[str, str]] = None
    callbacks: Optional[TelemetryCallbacks] = Field(default_factory=TelemetryCallbacks)


class AuthConfig(_PlanModel):
    mode: Literal["service_token"] = "service_token"
    token_ref: str = SERVICE_TOKEN_REF
    audience: Optional[str] = SERVICE_TOKEN_AUDIENCE


class DataHandlingConfig(_PlanModel):
    mask_in_logs: Optional[List[str]] = Field(default_factory=list)
    delete_output_after_ms: Optional[int] = DELETE_OUTPUT_AFTER_MS


class SecurityConfig(_PlanModel):
    auth: Optional[AuthConfig] = Field(default_factory=AuthConfig)
    data_handling: Optional[DataHandlingConfig] = Field(default_factory=DataHandlingConfig)


class ToolRef(_PlanModel):
    """Tool to invoke. ``endpoint`` is absent when it must be resolved downstream."""

    tool_id: str
    endpoint: Optional[ToolEndpoint] = None


class TerminateInfo(_PlanModel):
    status: TerminateStatus
    error: str


class StepTerminate(_PlanModel):
    terminate: TerminateInfo


class StepGoto(_PlanModel):
    goto: str
    record: Optional[Literal["fallback"]] = None


class StepOnSuccess(_PlanModel):
    complete_plan: bool


class PlanStep(_PlanModel):
    """One node of the plan state machine."""

    id: str
    name: str
    action: Literal["invoke_tool"] = "invoke_tool"
    tool_ref: ToolRef
    input: Dict[str, Any]
    expected_output: Optional[Union[Dict[str, Any], str]] = None
    on_success: Optional[StepOnSuccess] = None
    on_failure: Optional[Union[StepGoto, StepTerminate]] = None
    on_timeout: Optional[StepTerminate] = None


class TaskRoutingPlan(_PlanModel):
    """Executable routing plan handed to the orchestrator."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    plan_id: str
    schema_version: str
    created_at: datetime
    coordinator: CoordinatorInfo
    context: PlanContext
    goal: TaskGoal
    constraints: TaskConstraints = Field(default_factory=TaskConstraints)
    policy: PlanPolicy = Field(default_factory=PlanPolicy)
    candidates: List[CandidateScore]
    selected: Optional[PlanSelection] = None
    fallback: Optional[PlanSelection] = None
    retry: Optional[RetryPolicy] = Field(default_factory=RetryPolicy)
    telemetry: Optional[TelemetryConfig] = Field(default_factory=TelemetryConfig)
    security: Optional[SecurityConfig] = Field(default_factory=SecurityConfig)
    steps: List[PlanStep]

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready document with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
