"""Candidate scoring and ranking."""

from .engine import DEFAULT_SCORING_CONFIG, MetricsLookup, ScoringConfig, ScoringEngine

__all__ = ["DEFAULT_SCORING_CONFIG", "MetricsLookup", "ScoringConfig", "ScoringEngine"]
