"""Shared pytest fixtures for Steer Router tests."""

import itertools

import pytest

from steer_router.core.metrics.aggregator import MetricsAggregator
from steer_router.core.planning.builder import PlanBuilder
from steer_router.models.plan import CoordinatorInfo
from steer_router.models.task import parse_semantic_task
from steer_router.storage.in_memory import (
    InMemoryMetricsStore,
    InMemoryPlanStore,
    InMemoryToolRegistry,
)
from tests.helpers.factories import FIXED_NOW, make_task_payload


@pytest.fixture
def fixed_now():
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def plan_ids():
    """Deterministic plan id provider: tr_test_1, tr_test_2, ..."""
    counter = itertools.count(1)
    return lambda: f"tr_test_{next(counter)}"


@pytest.fixture
def tool_registry():
    return InMemoryToolRegistry()


@pytest.fixture
def metrics_store(fixed_now):
    return InMemoryMetricsStore(now=fixed_now)


@pytest.fixture
def plan_store():
    return InMemoryPlanStore()


@pytest.fixture
def plan_builder(tool_registry, metrics_store, plan_store, fixed_now, plan_ids):
    return PlanBuilder(
        tool_registry=tool_registry,
        metrics_store=metrics_store,
        plan_store=plan_store,
        coordinator=CoordinatorInfo(service="steer-router", version="0.1.0", instance="test-1"),
        now=fixed_now,
        plan_id_provider=plan_ids,
    )


@pytest.fixture
def aggregator(metrics_store, fixed_now):
    return MetricsAggregator(metrics_store, now=fixed_now)


@pytest.fixture
def task():
    return parse_semantic_task(make_task_payload())
