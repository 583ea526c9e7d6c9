"""Collaborator interfaces consumed by the routing core.

Each interface has an in-memory adapter for tests and local development
and a production adapter. Adapters are injected through constructors from
the composition root; there is no process-wide store instance.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.metrics import FeedbackSignal, ToolExecutionEvent, ToolMetrics
from ..models.tool import Tool


class ToolRegistry(ABC):
    """Read-only view of the tools enabled for each tenant."""

    @abstractmethod
    async def get_tools_for_capability(self, tenant_id: str, capability: str) -> List[Tool]:
        """Return tenant-enabled tools that support ``capability``; empty if none."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass


class MetricsStore(ABC):
    """Persistence for aggregated tool metrics.

    Implementations must make ``record_execution`` an atomic
    upsert-and-increment per key, and run the read-blend-write of
    ``record_feedback`` under the store's own concurrency control.
    """

    @abstractmethod
    async def get_metrics(
        self,
        tenant_id: str,
        tool_id: str,
        capability: str
    ) -> Optional[ToolMetrics]:
        pass

    @abstractmethod
    async def save_metrics(self, metrics: ToolMetrics) -> None:
        """Upsert a metrics row by its composite key."""
        pass

    @abstractmethod
    async def record_execution(self, event: ToolExecutionEvent) -> None:
        """Count one execution and append the raw event to the audit log."""
        pass

    @abstractmethod
    async def record_feedback(
        self,
        signal: FeedbackSignal,
        alpha: float,
        now: datetime
    ) -> ToolMetrics:
        """Blend one reward into the row for ``signal.key`` and return the updated row."""
        pass

    async def close(self) -> None:
        pass


class PlanStore(ABC):
    """Audit store for plan documents."""

    @abstractmethod
    async def save_plan(self, plan_id: str, document: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        pass

    async def close(self) -> None:
        pass
