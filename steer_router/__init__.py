"""
Steer Router - capability routing with self-optimizing tool selection.

Given a task that asks for a capability, the router:
- finds the tools enabled for the tenant that support it
- ranks them with an explainable four-factor score
- emits a primary/fallback execution plan for the orchestrator
- learns from execution and feedback telemetry
"""

__version__ = "0.1.0"

from .core.metrics import MetricsAggregator, MetricsAggregatorConfig
from .core.planning import PlanBuilder, create_plan_id
from .core.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig, ScoringEngine
from .errors import (
    ConfigurationError,
    NoCandidatesError,
    PayloadValidationError,
    PlanNotFoundError,
    RouterError,
)
from .models import (
    CandidateScore,
    FeedbackSignal,
    SemanticTask,
    TaskRoutingPlan,
    Tool,
    ToolCapability,
    ToolExecutionEvent,
    ToolMetrics,
)

__all__ = [
    "__version__",
    # Core
    "PlanBuilder",
    "ScoringEngine",
    "ScoringConfig",
    "DEFAULT_SCORING_CONFIG",
    "MetricsAggregator",
    "MetricsAggregatorConfig",
    "create_plan_id",

    # Models
    "Tool",
    "ToolCapability",
    "ToolMetrics",
    "ToolExecutionEvent",
    "FeedbackSignal",
    "CandidateScore",
    "SemanticTask",
    "TaskRoutingPlan",

    # Errors
    "RouterError",
    "NoCandidatesError",
    "PayloadValidationError",
    "PlanNotFoundError",
    "ConfigurationError",
]
