"""Metrics update rules and the telemetry aggregator."""

from .aggregator import (
    MetricsAggregator,
    MetricsAggregatorConfig,
    apply_execution,
    apply_feedback,
    blend_reward,
    clamp_reward,
)

__all__ = [
    "MetricsAggregator",
    "MetricsAggregatorConfig",
    "apply_execution",
    "apply_feedback",
    "blend_reward",
    "clamp_reward",
]
