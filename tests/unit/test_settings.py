"""Unit tests for runtime settings and the composition root."""

import pytest

from steer_router.bootstrap import build_runtime_deps
from steer_router.config.constants import CostNormalization
from steer_router.config.settings import Environment, ServiceSettings, load_settings, parse_port
from steer_router.storage.http_registry import HttpToolRegistry
from steer_router.storage.in_memory import InMemoryToolRegistry
from steer_router.storage.sqlite import SQLiteToolRegistry

ENV_VARS = [
    "STEER_ROUTER_ENV", "ENV", "HOST", "PORT", "SERVICE_NAME", "SERVICE_VERSION",
    "SERVICE_INSTANCE_ID", "STEER_ROUTER_DB_PATH", "LOG_LEVEL", "STEER_ROUTER_REWARD_ALPHA",
    "STEER_ROUTER_COST_NORMALIZATION", "STEER_ROUTER_REGISTRY_URL", "STEER_ROUTER_REGISTRY_TIMEOUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParsePort:

    @pytest.mark.parametrize("raw,expected", [
        (None, 4000), ("", 4000), ("8080", 8080), ("abc", 4000), ("0", 4000),
        ("-1", 4000), ("65535", 65535), ("70000", 4000),
    ])
    def test_parse_port(self, raw, expected):
        assert parse_port(raw) == expected


class TestLoadSettings:

    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings.env == Environment.DEVELOPMENT
        assert settings.port == 4000
        assert settings.log_level == "DEBUG"
        assert settings.reward_ewma_alpha == 0.2
        assert settings.cost_normalization == CostNormalization.PRE_NORMALIZED
        assert settings.registry_url is None
        assert settings.instance_id

    def test_production_defaults_to_info(self, clean_env):
        clean_env.setenv("STEER_ROUTER_ENV", "Production")
        assert load_settings().log_level == "INFO"

    def test_overrides(self, clean_env):
        clean_env.setenv("PORT", "9000")
        clean_env.setenv("SERVICE_INSTANCE_ID", "router-3")
        clean_env.setenv("STEER_ROUTER_REWARD_ALPHA", "0.5")
        clean_env.setenv("STEER_ROUTER_COST_NORMALIZATION", "MIN_MAX")
        clean_env.setenv("STEER_ROUTER_REGISTRY_URL", "http://registry:8080")
        clean_env.setenv("STEER_ROUTER_REGISTRY_TIMEOUT", "2.5")

        settings = load_settings()

        assert settings.port == 9000
        assert settings.instance_id == "router-3"
        assert settings.reward_ewma_alpha == 0.5
        assert settings.cost_normalization == CostNormalization.MIN_MAX
        assert settings.registry_url == "http://registry:8080"
        assert settings.registry_timeout == 2.5

    @pytest.mark.parametrize("alpha,expected", [("7", 1.0), ("-1", 0.0), ("fast", 0.2), ("nan", 0.2)])
    def test_alpha_is_sanitised(self, clean_env, alpha, expected):
        clean_env.setenv("STEER_ROUTER_REWARD_ALPHA", alpha)
        assert load_settings().reward_ewma_alpha == expected

    @pytest.mark.parametrize("timeout", ["0", "-3", "slow"])
    def test_invalid_registry_timeout_falls_back(self, clean_env, timeout):
        clean_env.setenv("STEER_ROUTER_REGISTRY_TIMEOUT", timeout)
        assert load_settings().registry_timeout == 5.0

    def test_unknown_cost_normalization_falls_back(self, clean_env):
        clean_env.setenv("STEER_ROUTER_COST_NORMALIZATION", "logarithmic")
        assert load_settings().cost_normalization == CostNormalization.PRE_NORMALIZED


class TestBuildRuntimeDeps:

    def test_sqlite_by_default(self, tmp_path):
        settings = ServiceSettings(database_path=str(tmp_path / "router.db"), instance_id="i-1")
        deps = build_runtime_deps(settings)

        assert isinstance(deps.tool_registry, SQLiteToolRegistry)
        assert deps.plan_builder.metrics_store is deps.metrics_store
        assert deps.aggregator.store is deps.metrics_store
        assert deps.telemetry_handler.aggregator is deps.aggregator
        assert deps.plan_builder.coordinator.instance == "i-1"
        assert (tmp_path / "router.db").exists()

    @pytest.mark.asyncio
    async def test_remote_registry(self, tmp_path):
        settings = ServiceSettings(
            database_path=str(tmp_path / "router.db"),
            registry_url="http://registry:8080",
            cost_normalization=CostNormalization.MIN_MAX,
        )
        deps = build_runtime_deps(settings)

        assert isinstance(deps.tool_registry, HttpToolRegistry)
        assert deps.plan_builder.scoring_config.cost_normalization == CostNormalization.MIN_MAX
        await deps.shutdown()

    @pytest.mark.asyncio
    async def test_injected_stores_win(self, tool_registry, metrics_store, plan_store):
        deps = build_runtime_deps(
            ServiceSettings(), tool_registry=tool_registry,
            metrics_store=metrics_store, plan_store=plan_store,
        )

        assert isinstance(deps.tool_registry, InMemoryToolRegistry)
        assert deps.to_app_deps().plan_store is plan_store
        await deps.shutdown()
