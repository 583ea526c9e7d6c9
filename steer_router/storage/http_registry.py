"""Remote tool registry client.

Reads tenant-enabled tools from an external registry service:

    GET {base_url}/v1/tenants/{tenant_id}/tools?capability={capability}

The response is either a JSON list of tools or ``{"tools": [...]}``.
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from ..models.tool import Tool
from .base import ToolRegistry

logger = logging.getLogger(__name__)


class HttpToolRegistry(ToolRegistry):
    """ToolRegistry backed by an HTTP registry service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            base_url: Registry root, e.g. "http://registry:8080"
            timeout: Request timeout in seconds
            client: Pre-built client (tests inject one with a mock transport)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout
        )

    async def get_tools_for_capability(self, tenant_id: str, capability: str) -> List[Tool]:
        response = await self._client.get(
            f"/v1/tenants/{tenant_id}/tools", params={"capability": capability}
        )
        if response.status_code == 404:
            return []
        response.raise_for_status()

        payload: Any = response.json()
        items = payload.get("tools", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            logger.warning(f"Unexpected registry payload for tenant={tenant_id}")
            return []

        tools = []
        for item in items:
            try:
                tool = Tool.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping invalid registry entry: {e.error_count()} errors")
                continue
            if tool.supports(capability):
                tools.append(tool)
        return tools

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
