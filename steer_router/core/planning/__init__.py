"""Plan assembly."""

from .builder import PlanBuilder, extract_endpoint
from .plan_id import create_plan_id

__all__ = ["PlanBuilder", "create_plan_id", "extract_endpoint"]
