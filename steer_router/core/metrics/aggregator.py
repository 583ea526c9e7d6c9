"""
Metrics aggregation.

Folds execution and feedback telemetry into per (tenant, tool, capability)
ToolMetrics rows. The update rules are plain functions so every store
adapter applies exactly the same arithmetic; the aggregator wires them to a
MetricsStore.

Each call mutates cumulative state and must run exactly once per real
world event.
"""

import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional

from pydantic import BaseModel, Field

from ...config.constants import DEFAULT_REWARD_EWMA_ALPHA
from ...models.metrics import FeedbackSignal, ToolExecutionEvent, ToolMetrics
from ...observability.logging import RouterLogger
from ..bounds import clamp

if TYPE_CHECKING:
    from ...storage.base import MetricsStore

logger = RouterLogger("metrics")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_reward(value: float) -> float:
    """Clamp a reward into [-1, 1]. Non-finite rewards count as neutral."""
    if not math.isfinite(value):
        return 0.0
    return clamp(value, -1.0, 1.0)


def blend_reward(old: float, reward: float, alpha: float) -> float:
    """Exponentially weighted moving average of rewards, kept in [-1, 1]."""
    alpha = clamp(alpha)
    return clamp_reward((1.0 - alpha) * clamp_reward(old) + alpha * clamp_reward(reward))


def apply_execution(
    existing: Optional[ToolMetrics],
    event: ToolExecutionEvent,
    now: datetime
) -> ToolMetrics:
    """Return the metrics row after counting one execution.

    A missing row starts from zero counters and ``avg_reward = 0``.
    """
    if existing is None:
        existing = ToolMetrics(
            tenant_id=event.tenant_id,
            tool_id=event.tool_id,
            capability=event.capability,
            last_updated=now,
        )

    return existing.model_copy(update={
        "success_count": existing.success_count + (1 if event.success else 0),
        "failure_count": existing.failure_count + (0 if event.success else 1),
        "total_latency_ms": existing.total_latency_ms + event.latency_ms,
        "last_updated": now,
    })


def apply_feedback(
    existing: Optional[ToolMetrics],
    signal: FeedbackSignal,
    alpha: float,
    now: datetime
) -> ToolMetrics:
    """Return the metrics row after blending one reward signal.

    A missing row starts from zero counters with the reward itself as the
    average, so the first observation is taken as-is.
    """
    if existing is None:
        return ToolMetrics(
            tenant_id=signal.tenant_id,
            tool_id=signal.tool_id,
            capability=signal.capability,
            avg_reward=clamp_reward(signal.reward),
            last_updated=now,
        )

    return existing.model_copy(update={
        "avg_reward": blend_reward(existing.avg_reward, signal.reward, alpha),
        "last_updated": now,
    })


class MetricsAggregatorConfig(BaseModel):
    reward_ewma_alpha: float = Field(
        DEFAULT_REWARD_EWMA_ALPHA,
        description="EWMA smoothing constant; 0.1 changes slowly, 0.5 quickly"
    )


class MetricsAggregator:
    """Applies telemetry to the metrics store consulted by scoring."""

    def __init__(
        self,
        store: "MetricsStore",
        config: Optional[MetricsAggregatorConfig] = None,
        now: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.config = config or MetricsAggregatorConfig()
        self.alpha = clamp(self.config.reward_ewma_alpha)
        self.now = now or _utcnow

    async def record_execution(self, event: ToolExecutionEvent) -> None:
        """Count one execution. The store upserts and appends the audit record atomically."""
        await self.store.record_execution(event)
        logger.debug(
            "Recorded execution",
            tenant=event.tenant_id,
            capability=event.capability,
            tool_id=event.tool_id,
            success=event.success,
            latency_ms=event.latency_ms
        )

    async def record_feedback(self, signal: FeedbackSignal) -> ToolMetrics:
        """Blend a reward into the running average. The store runs the read-blend-write atomically."""
        updated = await self.store.record_feedback(signal, self.alpha, self.now())

        logger.debug(
            "Recorded feedback",
            tenant=signal.tenant_id,
            capability=signal.capability,
            tool_id=signal.tool_id,
            avg_reward=round(updated.avg_reward, 4)
        )
        return updated
