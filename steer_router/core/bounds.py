"""Numeric helpers shared by scoring and metrics aggregation."""

import math


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into [low, high]. NaN maps to ``low``."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))
