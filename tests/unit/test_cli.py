"""Unit tests for CLI commands."""

import json
import runpy

import dotenv
import pytest

from steer_router import cli
from steer_router.bootstrap import build_runtime_deps
from steer_router.config.settings import ServiceSettings
from tests.helpers.factories import CAPABILITY, TENANT, make_task_payload, make_tool


@pytest.fixture
def settings(tmp_path):
    return ServiceSettings(database_path=str(tmp_path / "router.db"), instance_id="cli-1")


def write_json(path, document):
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


class TestCliCommands:

    @pytest.mark.asyncio
    async def test_register_plan_and_show(self, settings, tmp_path, capsys):
        tool_path = write_json(
            tmp_path / "tool.json", make_tool("tool-a", base_cost=0.1).model_dump(by_alias=True)
        )
        assert await cli.register_tool(build_runtime_deps(settings), tool_path, [TENANT]) == 0
        assert "Registered tool-a v1.0.0 for tenants: acme-health" in capsys.readouterr().out

        task_path = write_json(tmp_path / "task.json", make_task_payload())
        assert await cli.build_plan(build_runtime_deps(settings), task_path) == 0
        plan = json.loads(capsys.readouterr().out)
        assert plan["selected"]["toolId"] == "tool-a"

        assert await cli.show_plan(build_runtime_deps(settings), plan["planId"]) == 0
        assert json.loads(capsys.readouterr().out)["planId"] == plan["planId"]

    @pytest.mark.asyncio
    async def test_invalid_tool_document(self, settings, tmp_path, capsys):
        tool_path = write_json(tmp_path / "tool.json", {"id": "", "name": "x"})

        assert await cli.register_tool(build_runtime_deps(settings), tool_path, []) == 1
        assert "invalid tool document" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_plan_without_candidates(self, settings, tmp_path, capsys):
        task_path = write_json(tmp_path / "task.json", make_task_payload())

        assert await cli.build_plan(build_runtime_deps(settings), task_path) == 1
        assert "No tools registered" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_invalid_task_lists_issues(self, settings, tmp_path, capsys):
        task_path = write_json(tmp_path / "task.json", {"context": {}})

        assert await cli.build_plan(build_runtime_deps(settings), task_path) == 1
        out = capsys.readouterr().out
        assert "Invalid SemanticTask payload" in out
        assert "  - " in out

    @pytest.mark.asyncio
    async def test_missing_plan_and_metrics(self, settings, capsys):
        assert await cli.show_plan(build_runtime_deps(settings), "tr_missing") == 1
        assert await cli.show_metrics(build_runtime_deps(settings), TENANT, "tool-a", CAPABILITY) == 1
        out = capsys.readouterr().out
        assert "Plan 'tr_missing' not found" in out
        assert "No metrics" in out


class TestModuleEntryPoint:

    def test_python_m_runs_cli_main(self, monkeypatch):
        calls = []
        monkeypatch.setattr(cli, "main", lambda: calls.append("main"))
        monkeypatch.setattr(dotenv, "load_dotenv", lambda *a, **kw: calls.append("load_dotenv"))

        runpy.run_module("steer_router", run_name="__main__")

        assert calls == ["main"]
