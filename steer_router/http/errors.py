"""Standard error envelope.

Every error response has the shape::

    {"error": {"code", "message", "correlationId"?, "issues"?, "details"?}}

so the orchestrator can parse failures reliably.
"""

from typing import Any, Dict, List, Optional

VALIDATION_ERROR = "VALIDATION_ERROR"
NO_CANDIDATES = "NO_CANDIDATES"
PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
NOT_FOUND = "NOT_FOUND"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


def build_error_envelope(
    code: str,
    message: str,
    correlation_id: Optional[str] = None,
    issues: Optional[List[str]] = None,
    details: Any = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if correlation_id:
        error["correlationId"] = correlation_id
    if issues is not None:
        error["issues"] = issues
    if details is not None:
        error["details"] = details
    return {"error": error}
