"""Metrics and telemetry models.

Used by the metrics aggregator to fold execution and feedback telemetry
into per (tenant, tool, capability) aggregates, and by the scoring engine
to evaluate candidates.
"""

from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class MetricsKey(NamedTuple):
    """Composite key of a metrics row."""
    tenant_id: str
    tool_id: str
    capability: str


class ToolExecutionEvent(BaseModel):
    """One tool invocation reported by the orchestrator."""

    plan_id: str
    step_id: str
    tenant_id: str
    tool_id: str
    capability: str
    latency_ms: float = Field(..., ge=0, allow_inf_nan=False)
    success: bool
    error_code: Optional[str] = None
    timestamp: datetime

    @property
    def key(self) -> MetricsKey:
        return MetricsKey(self.tenant_id, self.tool_id, self.capability)


class FeedbackSignal(BaseModel):
    """Reward signal for a tool outcome. +1 great, 0 neutral, -1 bad."""

    tenant_id: str
    tool_id: str
    capability: str
    reward: float
    timestamp: datetime

    @property
    def key(self) -> MetricsKey:
        return MetricsKey(self.tenant_id, self.tool_id, self.capability)


class ToolMetrics(BaseModel):
    """Aggregated performance of a tool for one tenant and capability."""

    tenant_id: str
    tool_id: str
    capability: str
    success_count: int = Field(0, ge=0)
    failure_count: int = Field(0, ge=0)
    total_latency_ms: float = Field(0.0, ge=0, allow_inf_nan=False)
    avg_reward: float = Field(0.0, ge=-1.0, le=1.0)
    last_updated: datetime

    @property
    def key(self) -> MetricsKey:
        return MetricsKey(self.tenant_id, self.tool_id, self.capability)

    @property
    def executions(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> Optional[float]:
        if self.executions == 0:
            return None
        return self.success_count / self.executions

    @property
    def avg_latency_ms(self) -> Optional[float]:
        # Average latency is derived, never stored
        if self.executions == 0:
            return None
        return self.total_latency_ms / self.executions
