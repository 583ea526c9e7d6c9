"""
In-memory storage adapters for testing and local development.

State lives in plain dicts guarded by an asyncio lock where a
read-modify-write happens. Returned objects are copies so callers cannot
mutate stored state.
"""

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..core.metrics.aggregator import apply_execution, apply_feedback
from ..models.metrics import FeedbackSignal, MetricsKey, ToolExecutionEvent, ToolMetrics
from ..models.tool import Tool
from .base import MetricsStore, PlanStore, ToolRegistry

logger = logging.getLogger(__name__)


class InMemoryToolRegistry(ToolRegistry):
    """Registry of tools with per-tenant enablement."""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._enabled: Dict[str, Set[str]] = {}

    def register_tool(self, tool: Tool, tenants: Optional[Iterable[str]] = None) -> None:
        """Register (or replace) a tool and optionally enable it for tenants."""
        if tool.id in self._tools:
            logger.warning(f"Overwriting existing tool: {tool.id}")
        self._tools[tool.id] = tool
        for tenant_id in tenants or ():
            self.enable_tool(tenant_id, tool.id)
        logger.info(f"Registered tool: {tool.id} v{tool.version}")

    def enable_tool(self, tenant_id: str, tool_id: str) -> None:
        if tool_id not in self._tools:
            raise KeyError(f"Unknown tool '{tool_id}'")
        self._enabled.setdefault(tenant_id, set()).add(tool_id)

    def disable_tool(self, tenant_id: str, tool_id: str) -> None:
        self._enabled.get(tenant_id, set()).discard(tool_id)

    def clear(self) -> None:
        self._tools.clear()
        self._enabled.clear()

    async def get_tools_for_capability(self, tenant_id: str, capability: str) -> List[Tool]:
        enabled = self._enabled.get(tenant_id, set())
        return [
            tool for tool_id, tool in self._tools.items()
            if tool_id in enabled and tool.supports(capability)
        ]


class InMemoryMetricsStore(MetricsStore):
    """Metrics rows keyed by (tenant, tool, capability) plus an execution audit list."""

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._rows: Dict[MetricsKey, ToolMetrics] = {}
        self._lock = asyncio.Lock()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.events: List[ToolExecutionEvent] = []

    async def get_metrics(
        self,
        tenant_id: str,
        tool_id: str,
        capability: str
    ) -> Optional[ToolMetrics]:
        row = self._rows.get(MetricsKey(tenant_id, tool_id, capability))
        return row.model_copy() if row is not None else None

    async def save_metrics(self, metrics: ToolMetrics) -> None:
        async with self._lock:
            self._rows[metrics.key] = metrics.model_copy()

    async def record_execution(self, event: ToolExecutionEvent) -> None:
        async with self._lock:
            self._rows[event.key] = apply_execution(self._rows.get(event.key), event, self._now())
            self.events.append(event)

    async def record_feedback(
        self,
        signal: FeedbackSignal,
        alpha: float,
        now: datetime
    ) -> ToolMetrics:
        async with self._lock:
            updated = apply_feedback(self._rows.get(signal.key), signal, alpha, now)
            self._rows[signal.key] = updated
        return updated.model_copy()

    def clear(self) -> None:
        self._rows.clear()
        self.events.clear()


class InMemoryPlanStore(PlanStore):
    """Plan documents keyed by plan id."""

    def __init__(self):
        self._plans: Dict[str, Dict[str, Any]] = {}

    async def save_plan(self, plan_id: str, document: Dict[str, Any]) -> None:
        self._plans[plan_id] = copy.deepcopy(document)

    async def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        document = self._plans.get(plan_id)
        return copy.deepcopy(document) if document is not None else None

    def __len__(self) -> int:
        return len(self._plans)
