"""Unit tests for the HTTP tool registry client."""

import httpx
import pytest

from steer_router.storage.http_registry import HttpToolRegistry
from tests.helpers.factories import CAPABILITY, TENANT

BASE_URL = "http://registry.test"


def tool_json(tool_id, capability=CAPABILITY):
    return {"id": tool_id, "name": tool_id, "version": "1.0.0", "capabilities": [{"name": capability}]}


def registry_for(handler):
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpToolRegistry(BASE_URL, client=client), client


class TestHttpToolRegistry:

    @pytest.mark.asyncio
    async def test_list_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["capability"] = request.url.params["capability"]
            return httpx.Response(200, json=[tool_json("tool-a"), tool_json("tool-x", "patient.update")])

        registry, client = registry_for(handler)
        tools = await registry.get_tools_for_capability(TENANT, CAPABILITY)

        assert [t.id for t in tools] == ["tool-a"]
        assert seen == {"path": f"/v1/tenants/{TENANT}/tools", "capability": CAPABILITY}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_wrapped_payload(self):
        registry, client = registry_for(
            lambda request: httpx.Response(200, json={"tools": [tool_json("tool-a"), tool_json("tool-b")]})
        )
        tools = await registry.get_tools_for_capability(TENANT, CAPABILITY)

        assert [t.id for t in tools] == ["tool-a", "tool-b"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_entries_are_skipped(self):
        registry, client = registry_for(
            lambda request: httpx.Response(200, json=[{"id": ""}, "junk", tool_json("tool-a")])
        )
        tools = await registry.get_tools_for_capability(TENANT, CAPABILITY)

        assert [t.id for t in tools] == ["tool-a"]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unknown_tenant_returns_empty(self):
        registry, client = registry_for(lambda request: httpx.Response(404, json={"error": "nope"}))
        assert await registry.get_tools_for_capability(TENANT, CAPABILITY) == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        registry, client = registry_for(lambda request: httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await registry.get_tools_for_capability(TENANT, CAPABILITY)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        registry, client = registry_for(lambda request: httpx.Response(200, json=[]))
        await registry.close()

        assert not client.is_closed
        await client.aclose()
