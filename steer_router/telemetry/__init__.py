"""Telemetry ingestion."""

from .handler import TelemetryHandler
from .schemas import ExecutionTelemetryPayload, FeedbackTelemetryPayload, parse_telemetry

__all__ = [
    "ExecutionTelemetryPayload",
    "FeedbackTelemetryPayload",
    "TelemetryHandler",
    "parse_telemetry",
]
