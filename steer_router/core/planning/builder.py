"""
Plan builder.

Turns a SemanticTask into a persisted TaskRoutingPlan:

1. fetch tenant-enabled candidates for the capability
2. load their metrics concurrently
3. rank them with the scoring engine
4. select a primary and a fallback
5. build the step state machine
6. assemble and persist the plan document

Collaborator failures propagate unmodified. Retries described in the plan
apply to the orchestrator's tool calls, never to building the plan.
"""

import asyncio
import os
import socket
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from ...config.constants import (
    ALL_CANDIDATES_FAILED_ERROR,
    EXPECTED_OUTPUT_REF,
    FALLBACK_REASON,
    FALLBACK_STEP_ID,
    PLAN_SCHEMA_VERSION,
    PRIMARY_FAILED_ERROR,
    PRIMARY_REASON,
    PRIMARY_STEP_ID,
    STEP_TIMEOUT_ERROR,
)
from ...errors import NoCandidatesError
from ...models.metrics import ToolMetrics
from ...models.plan import (
    CoordinatorInfo,
    PlanContext,
    PlanSelection,
    PlanStep,
    StepGoto,
    StepOnSuccess,
    StepTerminate,
    TaskRoutingPlan,
    TelemetryConfig,
    TerminateInfo,
    ToolRef,
)
from ...models.scoring import CandidateScore
from ...models.task import SemanticTask, TaskConstraints
from ...models.tool import Tool, ToolEndpoint
from ...observability.logging import RouterLogger
from ...storage.base import MetricsStore, PlanStore, ToolRegistry
from ..scoring.engine import ScoringConfig, ScoringEngine
from .plan_id import create_plan_id

logger = RouterLogger("plan_builder")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_endpoint(tool: Tool) -> Optional[ToolEndpoint]:
    """Typed endpoint from ``tool.meta["endpoint"]``, or None when absent or malformed."""
    if not isinstance(tool.meta, dict):
        return None
    candidate = tool.meta.get("endpoint")
    if not isinstance(candidate, dict):
        return None
    try:
        return ToolEndpoint.model_validate(candidate)
    except ValidationError:
        logger.debug("Ignoring malformed endpoint metadata", tool_id=tool.id)
        return None


def _terminate(status: str, error: str) -> StepTerminate:
    return StepTerminate(terminate=TerminateInfo(status=status, error=error))


class PlanBuilder:
    """Builds TaskRoutingPlans from SemanticTasks."""

    def __init__(
        self,
        tool_registry: ToolRegistry,
        metrics_store: MetricsStore,
        plan_store: PlanStore,
        scoring_engine: Optional[ScoringEngine] = None,
        scoring_config: Optional[ScoringConfig] = None,
        coordinator: Optional[CoordinatorInfo] = None,
        schema_version: str = PLAN_SCHEMA_VERSION,
        now: Optional[Callable[[], datetime]] = None,
        plan_id_provider: Optional[Callable[[], str]] = None
    ):
        """
        Args:
            tool_registry: Source of tenant-enabled candidate tools
            metrics_store: Source of per-tool metrics
            plan_store: Destination of built plans
            scoring_engine: Ranks candidates (defaults to a fresh engine)
            scoring_config: Config passed to every ranking call
            coordinator: Service identity stamped into each plan
            schema_version: Plan schema version
            now: Clock, injectable for deterministic tests
            plan_id_provider: Plan id generator
        """
        self.tool_registry = tool_registry
        self.metrics_store = metrics_store
        self.plan_store = plan_store
        self.scoring_config = scoring_config
        self.scoring_engine = scoring_engine or ScoringEngine(scoring_config)
        self.coordinator = coordinator or CoordinatorInfo(service="steer-router", version="0.1.0")
        self.schema_version = schema_version
        self.now = now or _utcnow
        self.plan_id_provider = plan_id_provider or create_plan_id

    async def build_plan(self, task: SemanticTask) -> TaskRoutingPlan:
        """Build, persist and return a plan for ``task``.

        Raises:
            NoCandidatesError: If no tool supports the capability for the tenant
        """
        tenant_id = task.tenant_id
        capability = task.capability

        with logger.track_request(
            "build_plan",
            tenant=tenant_id,
            capability=capability,
            correlation_id=task.context.correlation_id
        ):
            created_at = self.now()
            plan_id = self.plan_id_provider()

            tools = await self.tool_registry.get_tools_for_capability(tenant_id, capability)
            if not tools:
                raise NoCandidatesError(tenant_id, capability)

            metrics = await self._load_metrics(tenant_id, capability, tools)
            ranked = self.scoring_engine.rank_candidates(
                tools, metrics.get, capability, self.scoring_config
            )

            selected = self._select_primary(ranked)
            fallback = self._select_fallback(ranked, selected.tool_id)
            tools_by_id = {tool.id: tool for tool in tools}
            steps = self._build_steps(task, tools_by_id, selected, fallback)

            plan = TaskRoutingPlan(
                plan_id=plan_id,
                schema_version=self.schema_version,
                created_at=created_at,
                coordinator=self._coordinator_info(),
                context=PlanContext(
                    **task.context.model_dump(), requester=task.requester
                ),
                goal=task.goal,
                constraints=task.constraints or TaskConstraints(),
                candidates=ranked,
                selected=selected,
                fallback=fallback,
                telemetry=TelemetryConfig(
                    metrics_labels={"tenant": tenant_id, "capability": capability}
                ),
                steps=steps,
            )

            # The plan is the audit record, so a failed save fails the build
            await self.plan_store.save_plan(plan.plan_id, plan.to_document())

            logger.info(
                "Built plan",
                tenant=tenant_id,
                capability=capability,
                plan_id=plan.plan_id,
                candidates=len(ranked),
                selected=selected.tool_id,
                fallback=fallback.tool_id if fallback else None
            )
            return plan

    async def _load_metrics(
        self,
        tenant_id: str,
        capability: str,
        tools: List[Tool]
    ) -> Dict[str, Optional[ToolMetrics]]:
        rows = await asyncio.gather(*[
            self.metrics_store.get_metrics(tenant_id, tool.id, capability)
            for tool in tools
        ])
        return {tool.id: row for tool, row in zip(tools, rows)}

    def _coordinator_info(self) -> CoordinatorInfo:
        instance = (self.coordinator.instance or "").strip()
        if not instance:
            instance = (
                os.getenv("SERVICE_INSTANCE_ID")
                or os.getenv("HOSTNAME")
                or socket.gethostname()
            )
        return self.coordinator.model_copy(update={"instance": instance})

    @staticmethod
    def _select_primary(ranked: List[CandidateScore]) -> PlanSelection:
        return PlanSelection(tool_id=ranked[0].tool_id, reason=PRIMARY_REASON, rank=1)

    @staticmethod
    def _select_fallback(
        ranked: List[CandidateScore],
        primary_id: str
    ) -> Optional[PlanSelection]:
        for candidate in ranked:
            if candidate.tool_id != primary_id:
                return PlanSelection(tool_id=candidate.tool_id, reason=FALLBACK_REASON, rank=2)
        return None

    def _build_steps(
        self,
        task: SemanticTask,
        tools_by_id: Dict[str, Tool],
        selected: PlanSelection,
        fallback: Optional[PlanSelection]
    ) -> List[PlanStep]:
        timeout = _terminate("timeout", STEP_TIMEOUT_ERROR)

        primary = tools_by_id[selected.tool_id]
        if fallback is not None:
            on_failure = StepGoto(goto=FALLBACK_STEP_ID, record="fallback")
        else:
            on_failure = _terminate("failure", PRIMARY_FAILED_ERROR)

        steps = [
            PlanStep(
                id=PRIMARY_STEP_ID,
                name="Primary execution",
                tool_ref=ToolRef(tool_id=primary.id, endpoint=extract_endpoint(primary)),
                input=task.goal.input,
                expected_output=EXPECTED_OUTPUT_REF,
                on_success=StepOnSuccess(complete_plan=fallback is None),
                on_failure=on_failure,
                on_timeout=timeout,
            )
        ]

        if fallback is None:
            return steps

        secondary = tools_by_id[fallback.tool_id]
        steps.append(
            PlanStep(
                id=FALLBACK_STEP_ID,
                name="Fallback execution",
                tool_ref=ToolRef(tool_id=secondary.id, endpoint=extract_endpoint(secondary)),
                input=task.goal.input,
                expected_output=EXPECTED_OUTPUT_REF,
                on_success=StepOnSuccess(complete_plan=True),
                on_failure=_terminate("failure", ALL_CANDIDATES_FAILED_ERROR),
                on_timeout=timeout,
            )
        )
        return steps
