"""
Semantic task models.

A SemanticTask is the structured request the router receives from the
NL-to-task translator. The plan builder enriches it into a TaskRoutingPlan.
Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..errors import PayloadValidationError

RequesterType = Literal["user", "service"]
NetworkDenyMode = Literal["never", "on-sensitive", "always"]


def _require_non_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must be a non-empty string")
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Requester(_WireModel):
    """Entity (user or service) that initiated the task."""

    type: RequesterType
    id: str
    scopes: Optional[List[str]] = None

    @field_validator("id")
    @classmethod
    def check_non_blank(cls, value: str) -> str:
        return _require_non_blank(value)


class TaskGoal(_WireModel):
    """What the task is trying to achieve."""

    capability: str
    input: Dict[str, Any]
    description: Optional[str] = None

    @field_validator("capability")
    @classmethod
    def check_non_blank(cls, value: str) -> str:
        return _require_non_blank(value)


class TaskConstraints(_WireModel):
    """Execution constraints that guide routing decisions."""

    overall_timeout_ms: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    max_parallel: Optional[int] = Field(None, gt=0)
    cost_budget: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    privacy_tags: Optional[List[str]] = None
    deny_network_when: Optional[NetworkDenyMode] = None


class TaskContext(_WireModel):
    """Tenant and environment in which the task runs."""

    tenant: str
    correlation_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    locale: Optional[str] = None
    region: Optional[str] = None

    @field_validator("tenant", "correlation_id", "idempotency_key", "locale", "region")
    @classmethod
    def check_non_blank(cls, value: Optional[str]) -> Optional[str]:
        return _require_non_blank(value)


class SemanticTask(_WireModel):
    """Top-level task submitted for routing. The tenant lives in ``context``."""

    context: TaskContext
    requester: Requester
    goal: TaskGoal
    constraints: Optional[TaskConstraints] = None

    @property
    def tenant_id(self) -> str:
        return self.context.tenant

    @property
    def capability(self) -> str:
        return self.goal.capability


def parse_semantic_task(payload: Any) -> SemanticTask:
    """Validate a raw JSON payload into a SemanticTask.

    Raises:
        PayloadValidationError: with one issue per invalid field
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError(
            "Invalid SemanticTask payload", ["Payload must be a JSON object."]
        )
    try:
        return SemanticTask.model_validate(payload)
    except ValidationError as e:
        raise PayloadValidationError.from_pydantic("Invalid SemanticTask payload", e) from e
