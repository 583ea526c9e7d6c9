"""Data models shared by the scoring engine, plan builder and metrics aggregator."""

from .metrics import FeedbackSignal, MetricsKey, ToolExecutionEvent, ToolMetrics
from .plan import (
    CoordinatorInfo,
    PlanContext,
    PlanPolicy,
    PlanSelection,
    PlanStep,
    RetryPolicy,
    SecurityConfig,
    StepGoto,
    StepOnSuccess,
    StepTerminate,
    TaskRoutingPlan,
    TelemetryConfig,
    TerminateInfo,
    ToolRef,
)
from .scoring import CandidateExplain, CandidateScore, ScoringWeights
from .task import (
    Requester,
    SemanticTask,
    TaskConstraints,
    TaskContext,
    TaskGoal,
    parse_semantic_task,
)
from .tool import Tool, ToolCapability, ToolEndpoint

__all__ = [
    # Tools
    "Tool",
    "ToolCapability",
    "ToolEndpoint",
    # Metrics
    "MetricsKey",
    "ToolMetrics",
    "ToolExecutionEvent",
    "FeedbackSignal",
    # Scoring
    "ScoringWeights",
    "CandidateExplain",
    "CandidateScore",
    # Tasks
    "Requester",
    "SemanticTask",
    "TaskConstraints",
    "TaskContext",
    "TaskGoal",
    "parse_semantic_task",
    # Plans
    "CoordinatorInfo",
    "PlanContext",
    "PlanPolicy",
    "PlanSelection",
    "PlanStep",
    "RetryPolicy",
    "SecurityConfig",
    "StepGoto",
    "StepOnSuccess",
    "StepTerminate",
    "TaskRoutingPlan",
    "TelemetryConfig",
    "TerminateInfo",
    "ToolRef",
]
