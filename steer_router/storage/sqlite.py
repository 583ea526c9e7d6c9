"""
SQLite-backed storage adapters.

DB: data/steer_router.db (configurable, see STEER_ROUTER_DB_PATH)

Blocking sqlite3 calls run in a worker thread through ``asyncio.to_thread``
and every call opens its own short-lived connection. Loose column values
(costs, rewards, JSON blobs) are coerced here so the core only ever sees
strict models.
"""

import asyncio
import json
import logging
import math
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from pydantic import ValidationError

from ..core.metrics.aggregator import apply_feedback
from ..models.metrics import FeedbackSignal, ToolExecutionEvent, ToolMetrics
from ..models.tool import Tool, ToolCapability
from .base import MetricsStore, PlanStore, ToolRegistry

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS tools (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        version TEXT NOT NULL,
        region TEXT,
        base_cost REAL,
        capabilities TEXT NOT NULL DEFAULT '[]',
        meta TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tenant_tools (
        tenant_id TEXT NOT NULL,
        tool_id TEXT NOT NULL REFERENCES tools(id),
        enabled INTEGER NOT NULL DEFAULT 1,
        PRIMARY KEY (tenant_id, tool_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tool_metrics (
        tenant_id TEXT NOT NULL,
        tool_id TEXT NOT NULL,
        capability TEXT NOT NULL,
        success_count INTEGER NOT NULL DEFAULT 0,
        failure_count INTEGER NOT NULL DEFAULT 0,
        total_latency_ms REAL NOT NULL DEFAULT 0,
        avg_reward REAL NOT NULL DEFAULT 0,
        last_updated TEXT NOT NULL,
        PRIMARY KEY (tenant_id, tool_id, capability)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tool_execution_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plan_id TEXT NOT NULL,
        step_id TEXT NOT NULL,
        tenant_id TEXT NOT NULL,
        tool_id TEXT NOT NULL,
        capability TEXT NOT NULL,
        latency_ms REAL NOT NULL,
        success INTEGER NOT NULL,
        error_code TEXT,
        timestamp TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_events_key
    ON tool_execution_events(tenant_id, tool_id, capability)
    """,
    """
    CREATE TABLE IF NOT EXISTS plans (
        plan_id TEXT PRIMARY KEY,
        document TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_float(value: Any, fallback: Optional[float] = None) -> Optional[float]:
    """Coerce a loosely typed column value to a finite float."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(number) or math.isinf(number):
        return fallback
    return number


def _load_json(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed JSON column value")
        return None


def _parse_capabilities(raw: Optional[str]) -> List[ToolCapability]:
    """Parse the capabilities column, skipping entries without a usable name."""
    value = _load_json(raw)
    if not isinstance(value, list):
        return []

    capabilities = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        entry = {"name": item["name"]}
        for key in ("inputsSchema", "outputsSchema"):
            if isinstance(item.get(key), dict):
                entry[key] = item[key]
        try:
            capabilities.append(ToolCapability.model_validate(entry))
        except ValidationError:
            continue
    return capabilities


def _parse_meta(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    value = _load_json(raw)
    return value if isinstance(value, dict) else None


class SQLiteDatabase:
    """Owns the database file and its schema."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self.connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()


class SQLiteToolRegistry(ToolRegistry):
    """Tools enabled per tenant, read from the ``tools`` and ``tenant_tools`` tables."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    async def get_tools_for_capability(self, tenant_id: str, capability: str) -> List[Tool]:
        return await asyncio.to_thread(self._get_tools_for_capability, tenant_id, capability)

    def _get_tools_for_capability(self, tenant_id: str, capability: str) -> List[Tool]:
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT t.* FROM tools t
                JOIN tenant_tools tt ON tt.tool_id = t.id
                WHERE tt.tenant_id = ? AND tt.enabled = 1
                ORDER BY t.id
                """,
                (tenant_id,)
            ).fetchall()

        tools = []
        for row in rows:
            tool = self._row_to_tool(row)
            if tool is not None and tool.supports(capability):
                tools.append(tool)
        return tools

    def _row_to_tool(self, row: sqlite3.Row) -> Optional[Tool]:
        try:
            return Tool(
                id=row["id"],
                name=row["name"],
                version=row["version"],
                region=row["region"],
                base_cost=_to_float(row["base_cost"]),
                capabilities=_parse_capabilities(row["capabilities"]),
                meta=_parse_meta(row["meta"]),
            )
        except ValidationError as e:
            logger.warning(f"Skipping invalid tool row '{row['id']}': {e.error_count()} errors")
            return None

    async def register_tool(self, tool: Tool, tenants: Optional[Iterable[str]] = None) -> None:
        """Insert or replace a tool and enable it for the given tenants."""
        await asyncio.to_thread(self._register_tool, tool, list(tenants or ()))

    def _register_tool(self, tool: Tool, tenants: List[str]) -> None:
        capabilities = [
            c.model_dump(by_alias=True, exclude_none=True) for c in tool.capabilities
        ]
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO tools (id, name, version, region, base_cost, capabilities, meta)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    version = excluded.version,
                    region = excluded.region,
                    base_cost = excluded.base_cost,
                    capabilities = excluded.capabilities,
                    meta = excluded.meta
                """,
                (
                    tool.id,
                    tool.name,
                    tool.version,
                    tool.region,
                    tool.base_cost,
                    json.dumps(capabilities),
                    json.dumps(tool.meta) if tool.meta is not None else None,
                )
            )
            for tenant_id in tenants:
                self._set_enabled(conn, tenant_id, tool.id, True)
        logger.info(f"Registered tool: {tool.id} v{tool.version} tenants={tenants}")

    async def set_enabled(self, tenant_id: str, tool_id: str, enabled: bool) -> None:
        def run() -> None:
            with self.db.connect() as conn:
                self._set_enabled(conn, tenant_id, tool_id, enabled)

        await asyncio.to_thread(run)

    @staticmethod
    def _set_enabled(conn: sqlite3.Connection, tenant_id: str, tool_id: str, enabled: bool) -> None:
        conn.execute(
            """
            INSERT INTO tenant_tools (tenant_id, tool_id, enabled) VALUES (?, ?, ?)
            ON CONFLICT(tenant_id, tool_id) DO UPDATE SET enabled = excluded.enabled
            """,
            (tenant_id, tool_id, 1 if enabled else 0)
        )


class SQLiteMetricsStore(MetricsStore):
    """Aggregated metrics in ``tool_metrics`` with an execution audit table."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    async def get_metrics(
        self,
        tenant_id: str,
        tool_id: str,
        capability: str
    ) -> Optional[ToolMetrics]:
        return await asyncio.to_thread(self._get_metrics, tenant_id, tool_id, capability)

    def _get_metrics(self, tenant_id: str, tool_id: str, capability: str) -> Optional[ToolMetrics]:
        with self.db.connect() as conn:
            return self._select_metrics(conn, tenant_id, tool_id, capability)

    def _select_metrics(
        self,
        conn: sqlite3.Connection,
        tenant_id: str,
        tool_id: str,
        capability: str
    ) -> Optional[ToolMetrics]:
        row = conn.execute(
            """
            SELECT * FROM tool_metrics
            WHERE tenant_id = ? AND tool_id = ? AND capability = ?
            """,
            (tenant_id, tool_id, capability)
        ).fetchone()
        return self._row_to_metrics(row) if row is not None else None

    @staticmethod
    def _row_to_metrics(row: sqlite3.Row) -> ToolMetrics:
        reward = _to_float(row["avg_reward"], 0.0)
        return ToolMetrics(
            tenant_id=row["tenant_id"],
            tool_id=row["tool_id"],
            capability=row["capability"],
            success_count=max(int(_to_float(row["success_count"], 0.0)), 0),
            failure_count=max(int(_to_float(row["failure_count"], 0.0)), 0),
            total_latency_ms=max(_to_float(row["total_latency_ms"], 0.0), 0.0),
            avg_reward=min(max(reward, -1.0), 1.0),
            last_updated=row["last_updated"],
        )

    async def save_metrics(self, metrics: ToolMetrics) -> None:
        await asyncio.to_thread(self._save_metrics, metrics)

    def _save_metrics(self, metrics: ToolMetrics) -> None:
        with self.db.connect() as conn:
            self._upsert_metrics(conn, metrics)

    @staticmethod
    def _upsert_metrics(conn: sqlite3.Connection, metrics: ToolMetrics) -> None:
        conn.execute(
            """
            INSERT INTO tool_metrics (
                tenant_id, tool_id, capability, success_count, failure_count,
                total_latency_ms, avg_reward, last_updated
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(tenant_id, tool_id, capability) DO UPDATE SET
                success_count = excluded.success_count,
                failure_count = excluded.failure_count,
                total_latency_ms = excluded.total_latency_ms,
                avg_reward = excluded.avg_reward,
                last_updated = excluded.last_updated
            """,
            (
                metrics.tenant_id,
                metrics.tool_id,
                metrics.capability,
                metrics.success_count,
                metrics.failure_count,
                metrics.total_latency_ms,
                metrics.avg_reward,
                metrics.last_updated.isoformat(),
            )
        )

    async def record_feedback(
        self,
        signal: FeedbackSignal,
        alpha: float,
        now: datetime
    ) -> ToolMetrics:
        return await asyncio.to_thread(self._record_feedback, signal, alpha, now)

    def _record_feedback(self, signal: FeedbackSignal, alpha: float, now: datetime) -> ToolMetrics:
        with self.db.connect() as conn:
            # Write lock is held from the read until commit
            conn.execute("BEGIN IMMEDIATE")
            existing = self._select_metrics(
                conn, signal.tenant_id, signal.tool_id, signal.capability
            )
            updated = apply_feedback(existing, signal, alpha, now)
            self._upsert_metrics(conn, updated)
        return updated

    async def record_execution(self, event: ToolExecutionEvent) -> None:
        await asyncio.to_thread(self._record_execution, event)

    def _record_execution(self, event: ToolExecutionEvent) -> None:
        now = _utcnow().isoformat()
        # Single upsert keeps concurrent increments for one key from being lost
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO tool_metrics (
                    tenant_id, tool_id, capability, success_count, failure_count,
                    total_latency_ms, avg_reward, last_updated
                ) VALUES (?, ?, ?, ?, ?, ?, 0, ?)
                ON CONFLICT(tenant_id, tool_id, capability) DO UPDATE SET
                    success_count = success_count + excluded.success_count,
                    failure_count = failure_count + excluded.failure_count,
                    total_latency_ms = total_latency_ms + excluded.total_latency_ms,
                    last_updated = excluded.last_updated
                """,
                (
                    event.tenant_id,
                    event.tool_id,
                    event.capability,
                    1 if event.success else 0,
                    0 if event.success else 1,
                    event.latency_ms,
                    now,
                )
            )
            conn.execute(
                """
                INSERT INTO tool_execution_events (
                    plan_id, step_id, tenant_id, tool_id, capability,
                    latency_ms, success, error_code, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.plan_id,
                    event.step_id,
                    event.tenant_id,
                    event.tool_id,
                    event.capability,
                    event.latency_ms,
                    1 if event.success else 0,
                    event.error_code,
                    event.timestamp.isoformat(),
                )
            )

    async def count_execution_events(self, tenant_id: str, tool_id: str, capability: str) -> int:
        """Number of audited executions for a key."""
        def run() -> int:
            with self.db.connect() as conn:
                row = conn.execute(
                    """
                    SELECT COUNT(*) FROM tool_execution_events
                    WHERE tenant_id = ? AND tool_id = ? AND capability = ?
                    """,
                    (tenant_id, tool_id, capability)
                ).fetchone()
            return int(row[0])

        return await asyncio.to_thread(run)


class SQLitePlanStore(PlanStore):
    """Plan documents stored as JSON text."""

    def __init__(self, db: SQLiteDatabase):
        self.db = db

    async def save_plan(self, plan_id: str, document: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_plan, plan_id, document)

    def _save_plan(self, plan_id: str, document: Dict[str, Any]) -> None:
        with self.db.connect() as conn:
            conn.execute(
                "INSERT INTO plans (plan_id, document, created_at) VALUES (?, ?, ?)",
                (plan_id, json.dumps(document), _utcnow().isoformat())
            )

    async def get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._get_plan, plan_id)

    def _get_plan(self, plan_id: str) -> Optional[Dict[str, Any]]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT document FROM plans WHERE plan_id = ?", (plan_id,)
            ).fetchone()
        if row is None:
            return None
        document = _load_json(row["document"])
        return document if isinstance(document, dict) else None
