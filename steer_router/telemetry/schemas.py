"""
Telemetry payload contracts.

The orchestrator reports two kinds of telemetry after running a plan:

- execution: one tool invocation with its latency and outcome
- feedback: a quality signal for a tool outcome, reward in [-1.0, +1.0]

Payloads use camelCase keys and carry ``schemaVersion: "1.0"``.
"""

from datetime import datetime
from typing import Any, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..errors import PayloadValidationError
from ..models.metrics import FeedbackSignal, ToolExecutionEvent

PayloadT = TypeVar("PayloadT", bound="TelemetryPayload")


class TelemetryPayload(BaseModel):
    """Fields shared by every telemetry payload."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schema_version: Literal["1.0"]
    tenant_id: str
    plan_id: str
    tool_id: str
    capability: str
    timestamp: datetime

    @field_validator("tenant_id", "plan_id", "tool_id", "capability")
    @classmethod
    def check_non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be a non-empty string")
        return value


class ExecutionTelemetryPayload(TelemetryPayload):
    type: Literal["execution"]
    step_id: str = Field(..., min_length=1)
    success: bool = Field(..., strict=True)
    latency_ms: float = Field(..., ge=0, strict=True, allow_inf_nan=False)
    error_code: Optional[str] = None
    correlation_id: Optional[str] = None

    def to_event(self) -> ToolExecutionEvent:
        return ToolExecutionEvent(
            plan_id=self.plan_id,
            step_id=self.step_id,
            tenant_id=self.tenant_id,
            tool_id=self.tool_id,
            capability=self.capability,
            latency_ms=self.latency_ms,
            success=self.success,
            error_code=self.error_code,
            timestamp=self.timestamp,
        )


class FeedbackTelemetryPayload(TelemetryPayload):
    type: Literal["feedback"]
    step_id: Optional[str] = None
    reward: float = Field(..., ge=-1.0, le=1.0, strict=True, allow_inf_nan=False)
    source: Optional[Literal["user", "system", "validator"]] = None
    comment: Optional[str] = None

    def to_signal(self) -> FeedbackSignal:
        return FeedbackSignal(
            tenant_id=self.tenant_id,
            tool_id=self.tool_id,
            capability=self.capability,
            reward=self.reward,
            timestamp=self.timestamp,
        )


def parse_telemetry(model: Type[PayloadT], payload: Any, kind: str) -> PayloadT:
    """Validate ``payload`` against ``model``.

    Raises:
        PayloadValidationError: If the payload is not an object or a field is invalid
    """
    message = f"Invalid {kind} telemetry payload"
    if not isinstance(payload, dict):
        raise PayloadValidationError(message, ["Payload must be a JSON object."])
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise PayloadValidationError.from_pydantic(message, e) from e
