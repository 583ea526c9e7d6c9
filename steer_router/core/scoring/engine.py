"""
Scoring engine.

Ranks candidate tools for a requested capability with a four-factor,
explainable score:

    score = w_fit * capability_fit
          + w_sla * sla_likelihood
          + w_reward * past_reward
          + w_cost * (1 - normalized_cost)

The engine is pure and synchronous. It performs no I/O and keeps no state
between calls, so identical inputs always produce identical rankings.
"""

import math
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ...config.constants import (
    DEFAULT_LATENCY_MS,
    DEFAULT_REWARD,
    DEFAULT_SUCCESS_RATE,
    MAX_REASONABLE_LATENCY_MS,
    NEUTRAL_COST,
    SLA_LATENCY_WEIGHT,
    SLA_SUCCESS_WEIGHT,
    CostNormalization,
)
from ...models.metrics import ToolMetrics
from ...models.scoring import CandidateExplain, CandidateScore, ScoringWeights
from ...models.tool import Tool
from ..bounds import clamp

MetricsLookup = Callable[[str], Optional[ToolMetrics]]


class ScoringConfig(BaseModel):
    """Tunable inputs of the scoring formula."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    default_success_rate: float = Field(
        DEFAULT_SUCCESS_RATE, description="Success rate assumed for tools without executions"
    )
    default_latency_ms: float = Field(
        DEFAULT_LATENCY_MS, description="Latency assumed for tools without executions"
    )
    default_reward: float = Field(
        DEFAULT_REWARD, description="Past reward in [0, 1] assumed when metrics are absent"
    )
    max_reasonable_latency_ms: float = MAX_REASONABLE_LATENCY_MS
    sla_success_weight: float = SLA_SUCCESS_WEIGHT
    sla_latency_weight: float = SLA_LATENCY_WEIGHT
    cost_normalization: CostNormalization = CostNormalization.PRE_NORMALIZED


DEFAULT_SCORING_CONFIG = ScoringConfig()


def _usable_cost(value: Optional[float]) -> Optional[float]:
    if value is None or math.isnan(value):
        return None
    return value


class ScoringEngine:
    """Computes and ranks candidate scores."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_SCORING_CONFIG

    def rank_candidates(
        self,
        tools: Sequence[Tool],
        metrics_lookup: MetricsLookup,
        capability: str,
        config: Optional[ScoringConfig] = None
    ) -> List[CandidateScore]:
        """Score every tool and return them best first.

        Args:
            tools: Candidate tools, already scoped to the tenant
            metrics_lookup: Returns the metrics row of a tool id, or None
            capability: Requested capability name
            config: Overrides the engine's config for this call

        Returns:
            Scores sorted by descending score, ties by ascending tool id
        """
        cfg = config or self.config
        costs = self._normalized_costs(tools, cfg)

        scores = [
            self.score_candidate(tool, metrics_lookup(tool.id), capability, costs[tool.id], cfg)
            for tool in tools
        ]
        scores.sort(key=lambda s: (-s.score, s.tool_id))
        return scores

    def score_candidate(
        self,
        tool: Tool,
        metrics: Optional[ToolMetrics],
        capability: str,
        normalized_cost: float,
        config: Optional[ScoringConfig] = None
    ) -> CandidateScore:
        """Score a single tool when its normalized cost is already known."""
        cfg = config or self.config
        weights = cfg.weights

        capability_fit = 1.0 if tool.supports(capability) else 0.0
        sla_likelihood = self._sla_likelihood(metrics, cfg)
        past_reward = self._past_reward(metrics, cfg)
        normalized_cost = clamp(normalized_cost)

        score = (
            weights.fit * capability_fit
            + weights.sla * sla_likelihood
            + weights.reward * past_reward
            + weights.cost * (1.0 - normalized_cost)
        )

        return CandidateScore(
            tool_id=tool.id,
            score=clamp(score),
            explain=CandidateExplain(
                capability_fit=clamp(capability_fit),
                sla_likelihood=clamp(sla_likelihood),
                past_reward=clamp(past_reward),
                normalized_cost=normalized_cost,
                weights=weights,
            ),
        )

    def _normalized_costs(self, tools: Sequence[Tool], cfg: ScoringConfig) -> Dict[str, float]:
        # A sole candidate is never penalised for its cost
        if len(tools) == 1:
            return {tools[0].id: NEUTRAL_COST}

        if cfg.cost_normalization == CostNormalization.MIN_MAX:
            return self._min_max_costs(tools)

        costs = {}
        for tool in tools:
            cost = _usable_cost(tool.base_cost)
            costs[tool.id] = NEUTRAL_COST if cost is None else clamp(cost)
        return costs

    def _min_max_costs(self, tools: Sequence[Tool]) -> Dict[str, float]:
        present = [c for c in (_usable_cost(t.base_cost) for t in tools) if c is not None]
        low = min(present) if present else 0.0
        high = max(present) if present else 0.0

        costs = {}
        for tool in tools:
            cost = _usable_cost(tool.base_cost)
            if cost is None or high == low:
                costs[tool.id] = NEUTRAL_COST
            else:
                costs[tool.id] = (cost - low) / (high - low)
        return costs

    def _sla_likelihood(self, metrics: Optional[ToolMetrics], cfg: ScoringConfig) -> float:
        success_rate = cfg.default_success_rate
        avg_latency_ms = cfg.default_latency_ms
        if metrics is not None and metrics.executions > 0:
            success_rate = metrics.success_rate
            avg_latency_ms = metrics.avg_latency_ms

        max_latency = cfg.max_reasonable_latency_ms
        if max_latency <= 0:
            max_latency = MAX_REASONABLE_LATENCY_MS

        latency_score = clamp(1.0 - avg_latency_ms / max_latency)
        return clamp(
            cfg.sla_success_weight * clamp(success_rate)
            + cfg.sla_latency_weight * latency_score
        )

    def _past_reward(self, metrics: Optional[ToolMetrics], cfg: ScoringConfig) -> float:
        if metrics is None:
            return clamp(cfg.default_reward)
        return clamp(0.5 + metrics.avg_reward / 2)
