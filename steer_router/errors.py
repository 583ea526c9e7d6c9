"""Router-specific error definitions."""

from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError


class RouterError(Exception):
    """Base exception for routing errors."""
    pass


class NoCandidatesError(RouterError):
    """Raised when no tool supports the requested capability for a tenant."""

    def __init__(self, tenant_id: str, capability: str):
        self.tenant_id = tenant_id
        self.capability = capability
        super().__init__(
            f"No tools registered for tenant={tenant_id} capability={capability}"
        )


class PayloadValidationError(RouterError):
    """Raised when an inbound payload does not match its contract.

    Attributes:
        issues: Human-readable list of problems, one per offending field
    """

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        self.issues = issues or []
        super().__init__(message)

    @classmethod
    def from_pydantic(
        cls,
        message: str,
        error: PydanticValidationError
    ) -> "PayloadValidationError":
        """Flatten a pydantic ValidationError into issue strings."""
        issues = []
        for item in error.errors():
            location = ".".join(str(part) for part in item.get("loc", ()))
            if location:
                issues.append(f'"{location}": {item.get("msg")}')
            else:
                issues.append(str(item.get("msg")))
        return cls(message, issues)


class PlanNotFoundError(RouterError):
    """Raised when a stored plan lookup misses."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Plan '{plan_id}' not found")


class ConfigurationError(RouterError):
    """Raised when a runtime dependency has not been wired."""

    def __init__(self, component: str, details: Optional[Any] = None):
        self.component = component
        self.details = details
        super().__init__(
            f"{component} not configured. Inject it from the composition root."
        )
