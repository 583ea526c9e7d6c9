"""Unit tests for the scoring engine."""

import math

import pytest

from steer_router.config.constants import CostNormalization
from steer_router.core.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig, ScoringEngine
from steer_router.models.metrics import ToolMetrics
from steer_router.models.scoring import ScoringWeights
from tests.helpers.factories import CAPABILITY, FIXED_NOW, TENANT, make_tool


def metrics_for(tool_id: str, success: int = 0, failure: int = 0,
                total_latency_ms: float = 0.0, avg_reward: float = 0.0) -> ToolMetrics:
    return ToolMetrics(
        tenant_id=TENANT,
        tool_id=tool_id,
        capability=CAPABILITY,
        success_count=success,
        failure_count=failure,
        total_latency_ms=total_latency_ms,
        avg_reward=avg_reward,
        last_updated=FIXED_NOW,
    )


def no_metrics(tool_id):
    return None


class TestColdStart:
    """Candidates without any history."""

    def test_cold_start_factors_use_defaults(self):
        engine = ScoringEngine()
        [score] = engine.rank_candidates([make_tool("ehr-api")], no_metrics, CAPABILITY)

        assert score.explain.capability_fit == 1.0
        assert score.explain.sla_likelihood == pytest.approx(0.74)
        assert score.explain.past_reward == pytest.approx(0.5)
        assert score.explain.normalized_cost == 0.5
        assert score.score == pytest.approx(0.81)

    @pytest.mark.parametrize("base_cost", [None, 0.0, 0.9, 7.5, -3.0, float("nan")])
    def test_sole_candidate_cost_is_neutral(self, base_cost):
        engine = ScoringEngine()
        [score] = engine.rank_candidates(
            [make_tool("only", base_cost=base_cost)], no_metrics, CAPABILITY
        )
        assert score.explain.normalized_cost == 0.5

    def test_cheaper_tool_wins_when_history_is_equal(self):
        engine = ScoringEngine()
        ranked = engine.rank_candidates(
            [make_tool("tool-b", base_cost=0.2), make_tool("tool-a", base_cost=0.1)],
            no_metrics,
            CAPABILITY,
        )

        assert [s.tool_id for s in ranked] == ["tool-a", "tool-b"]
        assert ranked[0].score == pytest.approx(0.85)
        assert ranked[1].score == pytest.approx(0.84)

    def test_feedback_only_row_keeps_sla_defaults(self):
        """A row created by feedback has no executions, so SLA still uses defaults."""
        engine = ScoringEngine()
        rows = {"tool-a": metrics_for("tool-a", avg_reward=1.0)}
        [score] = engine.rank_candidates([make_tool("tool-a")], rows.get, CAPABILITY)

        assert score.explain.sla_likelihood == pytest.approx(0.74)
        assert score.explain.past_reward == pytest.approx(1.0)


class TestFactors:
    """Individual factor computations."""

    def test_sla_from_history(self):
        engine = ScoringEngine()
        rows = {"tool-a": metrics_for("tool-a", success=1, failure=1, total_latency_ms=6000)}
        [score] = engine.rank_candidates([make_tool("tool-a")], rows.get, CAPABILITY)

        # success rate 0.5, average latency 3000 ms beyond the 2000 ms ceiling
        assert score.explain.sla_likelihood == pytest.approx(0.35)

    def test_fast_successful_tool(self):
        engine = ScoringEngine()
        rows = {"tool-a": metrics_for("tool-a", success=1, total_latency_ms=200)}
        [score] = engine.rank_candidates([make_tool("tool-a")], rows.get, CAPABILITY)

        assert score.explain.sla_likelihood == pytest.approx(0.97)

    @pytest.mark.parametrize("avg_reward,expected", [(-1.0, 0.0), (0.0, 0.5), (0.2, 0.6), (1.0, 1.0)])
    def test_past_reward_mapping(self, avg_reward, expected):
        engine = ScoringEngine()
        rows = {"tool-a": metrics_for("tool-a", avg_reward=avg_reward)}
        [score] = engine.rank_candidates([make_tool("tool-a")], rows.get, CAPABILITY)
        assert score.explain.past_reward == pytest.approx(expected)

    @pytest.mark.parametrize("base_cost,expected", [
        (None, 0.5),
        (float("nan"), 0.5),
        (0.3, 0.3),
        (4.0, 1.0),
        (-1.0, 0.0),
    ])
    def test_pre_normalized_cost(self, base_cost, expected):
        engine = ScoringEngine()
        ranked = engine.rank_candidates(
            [make_tool("subject", base_cost=base_cost), make_tool("other", base_cost=0.5)],
            no_metrics,
            CAPABILITY,
        )
        subject = next(s for s in ranked if s.tool_id == "subject")
        assert subject.explain.normalized_cost == pytest.approx(expected)

    def test_min_max_cost_normalization(self):
        engine = ScoringEngine(ScoringConfig(cost_normalization=CostNormalization.MIN_MAX))
        ranked = engine.rank_candidates(
            [
                make_tool("cheap", base_cost=10),
                make_tool("mid", base_cost=20),
                make_tool("pricey", base_cost=30),
                make_tool("unknown"),
            ],
            no_metrics,
            CAPABILITY,
        )
        costs = {s.tool_id: s.explain.normalized_cost for s in ranked}
        assert costs == {"cheap": 0.0, "mid": 0.5, "pricey": 1.0, "unknown": 0.5}

    def test_min_max_equal_costs_are_neutral(self):
        engine = ScoringEngine(ScoringConfig(cost_normalization=CostNormalization.MIN_MAX))
        ranked = engine.rank_candidates(
            [make_tool("a", base_cost=3), make_tool("b", base_cost=3)], no_metrics, CAPABILITY
        )
        assert all(s.explain.normalized_cost == 0.5 for s in ranked)

    def test_non_positive_latency_ceiling_falls_back(self):
        engine = ScoringEngine(ScoringConfig(max_reasonable_latency_ms=0))
        [score] = engine.rank_candidates([make_tool("tool-a")], no_metrics, CAPABILITY)
        assert score.explain.sla_likelihood == pytest.approx(0.74)

    def test_weights_are_echoed(self):
        weights = ScoringWeights(fit=0.4, sla=0.3, reward=0.2, cost=0.1)
        engine = ScoringEngine(ScoringConfig(weights=weights))
        [score] = engine.rank_candidates([make_tool("tool-a")], no_metrics, CAPABILITY)
        assert score.explain.weights == weights

    def test_score_is_clamped(self):
        weights = ScoringWeights(fit=5.0, sla=1.0, reward=1.0, cost=1.0)
        engine = ScoringEngine(ScoringConfig(weights=weights))
        [score] = engine.rank_candidates([make_tool("tool-a")], no_metrics, CAPABILITY)
        assert score.score == 1.0

    def test_explain_factors_stay_in_unit_interval(self):
        config = ScoringConfig(default_success_rate=3.0, default_reward=-2.0, sla_success_weight=2.0)
        engine = ScoringEngine(config)
        [score] = engine.rank_candidates([make_tool("tool-a")], no_metrics, CAPABILITY)

        for value in (
            score.explain.capability_fit,
            score.explain.sla_likelihood,
            score.explain.past_reward,
            score.explain.normalized_cost,
        ):
            assert 0.0 <= value <= 1.0
            assert not math.isnan(value)


class TestRanking:
    """Ordering guarantees."""

    def test_ties_break_by_tool_id(self):
        engine = ScoringEngine()
        tools = [make_tool("zeta", base_cost=0.4), make_tool("alpha", base_cost=0.4),
                 make_tool("mu", base_cost=0.4)]
        ranked = engine.rank_candidates(tools, no_metrics, CAPABILITY)

        assert [s.tool_id for s in ranked] == ["alpha", "mu", "zeta"]
        assert len({s.score for s in ranked}) == 1

    def test_order_is_independent_of_input_order(self):
        engine = ScoringEngine()
        tools = [make_tool("b", base_cost=0.2), make_tool("a", base_cost=0.7), make_tool("c", base_cost=0.2)]
        forward = engine.rank_candidates(tools, no_metrics, CAPABILITY)
        backward = engine.rank_candidates(list(reversed(tools)), no_metrics, CAPABILITY)
        assert forward == backward

    def test_higher_score_ranks_first(self):
        engine = ScoringEngine()
        rows = {
            "reliable": metrics_for("reliable", success=10, total_latency_ms=1000, avg_reward=0.8),
            "flaky": metrics_for("flaky", success=2, failure=8, total_latency_ms=15000, avg_reward=-0.5),
        }
        ranked = engine.rank_candidates(
            [make_tool("flaky"), make_tool("reliable")], rows.get, CAPABILITY
        )
        assert [s.tool_id for s in ranked] == ["reliable", "flaky"]
        assert ranked[0].score > ranked[1].score

    def test_capability_mismatch_never_outranks_a_match(self):
        engine = ScoringEngine()
        rows = {"other": metrics_for("other", success=50, total_latency_ms=500, avg_reward=1.0)}
        ranked = engine.rank_candidates(
            [make_tool("other", capabilities=["patient.update"], base_cost=0.0),
             make_tool("matching", base_cost=1.0)],
            rows.get,
            CAPABILITY,
        )

        assert ranked[0].tool_id == "matching"
        mismatch = ranked[1]
        assert mismatch.tool_id == "other"
        assert mismatch.explain.capability_fit == 0.0

    def test_capability_match_is_case_sensitive(self):
        engine = ScoringEngine()
        [score] = engine.rank_candidates(
            [make_tool("tool-a", capabilities=["Patient.Search"])], no_metrics, CAPABILITY
        )
        assert score.explain.capability_fit == 0.0

    def test_call_config_overrides_engine_config(self):
        engine = ScoringEngine(DEFAULT_SCORING_CONFIG)
        override = ScoringConfig(default_reward=1.0)
        [score] = engine.rank_candidates([make_tool("tool-a")], no_metrics, CAPABILITY, override)
        assert score.explain.past_reward == 1.0
