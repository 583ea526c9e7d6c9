"""Telemetry handler.

Converts raw payloads into validated payload models, maps them to domain
events and applies them through the metrics aggregator. This is not an HTTP
controller; the HTTP routes call into it.
"""

from typing import Any

from ..core.metrics.aggregator import MetricsAggregator
from ..observability.logging import RouterLogger
from .schemas import ExecutionTelemetryPayload, FeedbackTelemetryPayload, parse_telemetry

logger = RouterLogger("telemetry")


class TelemetryHandler:
    """Entry point for execution and feedback telemetry."""

    def __init__(self, aggregator: MetricsAggregator):
        self.aggregator = aggregator

    async def handle_execution_telemetry(self, payload: Any) -> None:
        """Validate an execution payload and count it.

        Raises:
            PayloadValidationError: If the payload is malformed
        """
        dto = parse_telemetry(ExecutionTelemetryPayload, payload, "execution")
        await self.aggregator.record_execution(dto.to_event())
        logger.debug(
            "Accepted execution telemetry",
            tenant=dto.tenant_id,
            capability=dto.capability,
            plan_id=dto.plan_id,
            step_id=dto.step_id,
            correlation_id=dto.correlation_id
        )

    async def handle_feedback_telemetry(self, payload: Any) -> None:
        """Validate a feedback payload and blend its reward.

        Raises:
            PayloadValidationError: If the payload is malformed
        """
        dto = parse_telemetry(FeedbackTelemetryPayload, payload, "feedback")
        await self.aggregator.record_feedback(dto.to_signal())
        logger.debug(
            "Accepted feedback telemetry",
            tenant=dto.tenant_id,
            capability=dto.capability,
            plan_id=dto.plan_id,
            source=dto.source
        )
