"""Plan identifiers."""

import uuid

from ...config.constants import PLAN_ID_PREFIX


def create_plan_id() -> str:
    """Globally unique plan id: prefix plus a random 128-bit token, e.g. ``tr_3f2a...``."""
    return f"{PLAN_ID_PREFIX}{uuid.uuid4().hex}"
