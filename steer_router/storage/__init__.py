"""Storage interfaces and adapters."""

from .base import MetricsStore, PlanStore, ToolRegistry
from .http_registry import HttpToolRegistry
from .in_memory import InMemoryMetricsStore, InMemoryPlanStore, InMemoryToolRegistry
from .sqlite import SQLiteDatabase, SQLiteMetricsStore, SQLitePlanStore, SQLiteToolRegistry

__all__ = [
    "ToolRegistry",
    "MetricsStore",
    "PlanStore",
    "InMemoryToolRegistry",
    "InMemoryMetricsStore",
    "InMemoryPlanStore",
    "SQLiteDatabase",
    "SQLiteToolRegistry",
    "SQLiteMetricsStore",
    "SQLitePlanStore",
    "HttpToolRegistry",
]
