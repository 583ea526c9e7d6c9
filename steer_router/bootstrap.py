"""Composition root.

Builds the runtime object graph from ServiceSettings. Stores are created
once here and passed down through constructors; the same metrics store
feeds the plan builder and receives telemetry, which closes the learning
loop.
"""

from dataclasses import dataclass
from typing import List, Optional

from .config.settings import ServiceSettings
from .core.metrics.aggregator import MetricsAggregator, MetricsAggregatorConfig
from .core.planning.builder import PlanBuilder
from .core.scoring.engine import ScoringConfig, ScoringEngine
from .http.app import AppDeps
from .models.plan import CoordinatorInfo
from .observability.logging import RouterLogger
from .storage.base import MetricsStore, PlanStore, ToolRegistry
from .storage.http_registry import HttpToolRegistry
from .storage.sqlite import SQLiteDatabase, SQLiteMetricsStore, SQLitePlanStore, SQLiteToolRegistry
from .telemetry.handler import TelemetryHandler

logger = RouterLogger("bootstrap")


@dataclass
class RuntimeDeps:
    """Everything the HTTP layer and the CLI need at runtime."""
    settings: ServiceSettings
    tool_registry: ToolRegistry
    metrics_store: MetricsStore
    plan_store: PlanStore
    plan_builder: PlanBuilder
    aggregator: MetricsAggregator
    telemetry_handler: TelemetryHandler

    def to_app_deps(self) -> AppDeps:
        return AppDeps(
            plan_builder=self.plan_builder,
            telemetry_handler=self.telemetry_handler,
            plan_store=self.plan_store,
            service_name=self.settings.service_name,
        )

    async def shutdown(self) -> None:
        """Close every store once, even when several roles share one object."""
        closed: List[int] = []
        for resource in (self.tool_registry, self.metrics_store, self.plan_store):
            if id(resource) in closed:
                continue
            closed.append(id(resource))
            await resource.close()
        logger.info("Shutdown complete")


def build_runtime_deps(
    settings: ServiceSettings,
    tool_registry: Optional[ToolRegistry] = None,
    metrics_store: Optional[MetricsStore] = None,
    plan_store: Optional[PlanStore] = None
) -> RuntimeDeps:
    """Wire collaborators from settings.

    Stores passed explicitly take precedence over the configured adapters.
    """
    db: Optional[SQLiteDatabase] = None
    if tool_registry is None or metrics_store is None or plan_store is None:
        db = SQLiteDatabase(settings.database_path)

    if tool_registry is None:
        if settings.registry_url:
            tool_registry = HttpToolRegistry(settings.registry_url, timeout=settings.registry_timeout)
        else:
            tool_registry = SQLiteToolRegistry(db)
    metrics_store = metrics_store or SQLiteMetricsStore(db)
    plan_store = plan_store or SQLitePlanStore(db)

    scoring_config = ScoringConfig(cost_normalization=settings.cost_normalization)
    plan_builder = PlanBuilder(
        tool_registry=tool_registry,
        metrics_store=metrics_store,
        plan_store=plan_store,
        scoring_engine=ScoringEngine(scoring_config),
        scoring_config=scoring_config,
        coordinator=CoordinatorInfo(
            service=settings.service_name,
            version=settings.service_version,
            instance=settings.instance_id,
        ),
    )
    aggregator = MetricsAggregator(
        metrics_store,
        MetricsAggregatorConfig(reward_ewma_alpha=settings.reward_ewma_alpha),
    )

    logger.info(
        "Runtime dependencies built",
        env=settings.env.value,
        database=settings.database_path,
        registry=settings.registry_url or "sqlite",
        cost_normalization=settings.cost_normalization.value
    )

    return RuntimeDeps(
        settings=settings,
        tool_registry=tool_registry,
        metrics_store=metrics_store,
        plan_store=plan_store,
        plan_builder=plan_builder,
        aggregator=aggregator,
        telemetry_handler=TelemetryHandler(aggregator),
    )
