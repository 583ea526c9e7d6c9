"""CLI entry point for Steer Router."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .bootstrap import RuntimeDeps, build_runtime_deps
from .config.settings import ServiceSettings, load_settings
from .errors import NoCandidatesError, PayloadValidationError
from .models.task import parse_semantic_task
from .models.tool import Tool
from .observability.logging import configure_logging
from .storage.sqlite import SQLiteMetricsStore, SQLiteToolRegistry


def _read_json_file(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _print_json(document: Any) -> None:
    print(json.dumps(document, indent=2, default=str))


def serve(settings: ServiceSettings, host: str, port: int):
    """Run the HTTP service with uvicorn."""
    import uvicorn

    from .http.app import create_app

    deps = build_runtime_deps(settings)
    app = create_app(deps.to_app_deps(), shutdown=deps.shutdown)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


async def build_plan(deps: RuntimeDeps, task_path: str) -> int:
    """Build and print a plan for the task in ``task_path``."""
    try:
        task = parse_semantic_task(_read_json_file(task_path))
        plan = await deps.plan_builder.build_plan(task)
    except PayloadValidationError as e:
        print(f"Error: {e}")
        for issue in e.issues:
            print(f"  - {issue}")
        return 1
    except NoCandidatesError as e:
        print(f"Error: {e}")
        return 1
    finally:
        await deps.shutdown()

    _print_json(plan.to_document())
    return 0


async def show_plan(deps: RuntimeDeps, plan_id: str) -> int:
    try:
        document = await deps.plan_store.get_plan(plan_id)
    finally:
        await deps.shutdown()

    if document is None:
        print(f"Plan '{plan_id}' not found")
        return 1
    _print_json(document)
    return 0


async def register_tool(deps: RuntimeDeps, tool_path: str, tenants: list) -> int:
    """Register a tool JSON document in the local SQLite registry."""
    try:
        if not isinstance(deps.tool_registry, SQLiteToolRegistry):
            print("Error: tools can only be registered in the local SQLite registry")
            return 1
        try:
            tool = Tool.model_validate(_read_json_file(tool_path))
        except ValidationError as e:
            print(f"Error: invalid tool document ({e.error_count()} errors)")
            for item in e.errors():
                print(f"  - {'.'.join(str(p) for p in item['loc'])}: {item['msg']}")
            return 1
        await deps.tool_registry.register_tool(tool, tenants)
    finally:
        await deps.shutdown()

    print(f"Registered {tool.id} v{tool.version} for tenants: {', '.join(tenants) or '-'}")
    return 0


async def show_metrics(deps: RuntimeDeps, tenant_id: str, tool_id: str, capability: str) -> int:
    try:
        metrics = await deps.metrics_store.get_metrics(tenant_id, tool_id, capability)
        events = None
        if isinstance(deps.metrics_store, SQLiteMetricsStore):
            events = await deps.metrics_store.count_execution_events(tenant_id, tool_id, capability)
    finally:
        await deps.shutdown()

    if metrics is None:
        print(f"No metrics for tenant={tenant_id} tool={tool_id} capability={capability}")
        return 1

    print(f"Metrics for {tool_id} ({capability}) in tenant {tenant_id}:")
    print("-" * 50)
    print(f"  executions:     {metrics.executions}")
    print(f"  success rate:   {metrics.success_rate if metrics.success_rate is not None else '-'}")
    print(f"  avg latency ms: {metrics.avg_latency_ms if metrics.avg_latency_ms is not None else '-'}")
    print(f"  avg reward:     {metrics.avg_reward:.4f}")
    print(f"  last updated:   {metrics.last_updated.isoformat()}")
    if events is not None:
        print(f"  audited events: {events}")
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Steer Router CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP service')
    serve_parser.add_argument('--host', help='Bind address (default: HOST or 0.0.0.0)')
    serve_parser.add_argument('--port', type=int, help='Port (default: PORT or 4000)')

    plan_parser = subparsers.add_parser('plan', help='Build a routing plan for a task')
    plan_parser.add_argument('task', help='Path to a SemanticTask JSON file')

    show_parser = subparsers.add_parser('show-plan', help='Print a stored plan')
    show_parser.add_argument('plan_id', help='Plan identifier (e.g., "tr_...")')

    register_parser = subparsers.add_parser('register-tool', help='Register a tool')
    register_parser.add_argument('tool', help='Path to a Tool JSON file')
    register_parser.add_argument('--tenant', action='append', default=[],
                                 help='Tenant to enable the tool for (repeatable)')

    metrics_parser = subparsers.add_parser('metrics', help='Show aggregated tool metrics')
    metrics_parser.add_argument('tenant', help='Tenant identifier')
    metrics_parser.add_argument('tool', help='Tool identifier')
    metrics_parser.add_argument('capability', help='Capability name')

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    settings = load_settings()
    configure_logging(settings.log_level)

    if args.command == 'serve':
        serve(settings, args.host or settings.host, args.port or settings.port)
        return

    deps = build_runtime_deps(settings)
    if args.command == 'plan':
        code = asyncio.run(build_plan(deps, args.task))
    elif args.command == 'show-plan':
        code = asyncio.run(show_plan(deps, args.plan_id))
    elif args.command == 'register-tool':
        code = asyncio.run(register_tool(deps, args.tool, args.tenant))
    else:
        code = asyncio.run(show_metrics(deps, args.tenant, args.tool, args.capability))
    sys.exit(code)


if __name__ == "__main__":
    main()
