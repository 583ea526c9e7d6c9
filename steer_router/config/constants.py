"""
Routing defaults.

Central location for the constants used by scoring, metrics aggregation and
plan assembly. Runtime overrides come from environment variables, see
steer_router/config/settings.py.
"""

from enum import Enum


class CostNormalization(str, Enum):
    """How candidate base costs are mapped into [0, 1]."""
    PRE_NORMALIZED = "pre_normalized"  # registry publishes costs already in [0, 1]
    MIN_MAX = "min_max"  # rescale across the candidate batch


# Scoring weights for the final candidate score
DEFAULT_WEIGHT_FIT = 0.5
DEFAULT_WEIGHT_SLA = 0.25
DEFAULT_WEIGHT_REWARD = 0.15
DEFAULT_WEIGHT_COST = 0.1

# Cold start inputs used when a candidate has no execution history
DEFAULT_SUCCESS_RATE = 0.8
DEFAULT_LATENCY_MS = 800.0
DEFAULT_REWARD = 0.5  # already mapped into [0, 1]

# Latency normalisation: latency_score = 1 - avg_latency / MAX_REASONABLE_LATENCY_MS
MAX_REASONABLE_LATENCY_MS = 2000.0

# SLA composition weights
SLA_SUCCESS_WEIGHT = 0.7
SLA_LATENCY_WEIGHT = 0.3

# Neutral cost for sole candidates and tools without a declared cost
NEUTRAL_COST = 0.5

# Reward EWMA smoothing constant, valid range [0, 1]
DEFAULT_REWARD_EWMA_ALPHA = 0.2

# Plan document
PLAN_SCHEMA_VERSION = "1.0"
PLAN_ID_PREFIX = "tr_"

PRIMARY_STEP_ID = "step-1"
FALLBACK_STEP_ID = "step-2"
PRIMARY_REASON = "highest_score"
FALLBACK_REASON = "next_best"
PRIMARY_FAILED_ERROR = "PRIMARY_FAILED"
ALL_CANDIDATES_FAILED_ERROR = "ALL_CANDIDATES_FAILED"
STEP_TIMEOUT_ERROR = "per-tool-timeout"
EXPECTED_OUTPUT_REF = "policy.postConditions"

# Retry policy handed to the orchestrator (not applied while building plans)
DEFAULT_MAX_ATTEMPTS_PER_STEP = 1
DEFAULT_BACKOFF_INITIAL_MS = 100
DEFAULT_BACKOFF_FACTOR = 2.0

# Security stub
SERVICE_TOKEN_REF = "secret://steer-router/service-token"
SERVICE_TOKEN_AUDIENCE = "orchestrator"
DELETE_OUTPUT_AFTER_MS = 300000
