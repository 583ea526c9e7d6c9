"""Tool and capability models.

Tools represent agents, APIs, RPA bots, etc. that the orchestrator can
invoke. They are reference data owned by an external registry and are
read-only to the router.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel


class ToolCapability(BaseModel):
    """Logical capability supported by a tool, e.g. "patient.search"."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Capability name")
    inputs_schema: Optional[Dict[str, Any]] = Field(None, description="JSON schema for the input payload")
    outputs_schema: Optional[Dict[str, Any]] = Field(None, description="JSON schema for the output payload")


class Tool(BaseModel):
    """A single agent or integration endpoint that can be routed to."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1, description="Registry identifier, e.g. 'ehr-patient-api'")
    name: str = Field(..., description="Human-friendly name")
    version: str = Field(..., description="Tool or agent version")
    capabilities: List[ToolCapability] = Field(default_factory=list)
    region: Optional[str] = Field(None, description="Deployment location, e.g. 'us-east-1'")
    base_cost: Optional[float] = Field(None, description="Relative invocation cost")
    meta: Optional[Dict[str, Any]] = Field(None, description="Routing metadata, e.g. {'slaTier': 'gold'}")

    def supports(self, capability: str) -> bool:
        """Exact, case-sensitive capability match."""
        return any(c.name == capability for c in self.capabilities)


class ToolEndpoint(BaseModel):
    """HTTP endpoint declared under ``tool.meta["endpoint"]``."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: Literal["http"]
    url: str
    method: Literal["GET", "POST", "PUT", "DELETE"]
    timeout_ms: Union[StrictInt, StrictFloat]
