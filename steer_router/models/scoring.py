"""Explainable candidate scores produced by the scoring engine."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..config.constants import (
    DEFAULT_WEIGHT_COST,
    DEFAULT_WEIGHT_FIT,
    DEFAULT_WEIGHT_REWARD,
    DEFAULT_WEIGHT_SLA,
)


class ScoringWeights(BaseModel):
    """Weights applied to each factor of the final score."""
    model_config = ConfigDict(frozen=True)

    fit: float = Field(DEFAULT_WEIGHT_FIT, description="Weight of capability fit")
    sla: float = Field(DEFAULT_WEIGHT_SLA, description="Weight of SLA likelihood")
    reward: float = Field(DEFAULT_WEIGHT_REWARD, description="Weight of past reward")
    cost: float = Field(DEFAULT_WEIGHT_COST, description="Weight of (1 - normalized cost)")


class CandidateExplain(BaseModel):
    """Per-factor breakdown of a candidate score. Every factor is in [0, 1]."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    capability_fit: float
    sla_likelihood: float
    past_reward: float
    normalized_cost: float
    weights: ScoringWeights


class CandidateScore(BaseModel):
    """Score of a single candidate tool."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    tool_id: str
    score: float = Field(..., ge=0.0, le=1.0)
    explain: CandidateExplain
