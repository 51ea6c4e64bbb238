"""Unit tests for tools/list and tools/call helpers."""

import httpx
import pytest

from agentgoround.tools.mcp_registry import McpToolError, call_tool, list_tools


class FakeRpcClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def request(self, method, params=None):
        self.calls.append((method, params))
        if self.error:
            raise self.error
        return self.response


@pytest.mark.asyncio
async def test_list_tools_parses_descriptors():
    client = FakeRpcClient(
        {
            "id": "1",
            "result": {
                "tools": [
                    {"name": "time", "description": "Current time", "inputSchema": {"type": "object"}},
                    {"description": "nameless"},
                    "junk",
                ]
            },
        }
    )

    tools = await list_tools(client)

    assert client.calls == [("tools/list", None)]
    assert len(tools) == 1
    assert tools[0].name == "time"
    assert tools[0].input_schema == {"type": "object"}


@pytest.mark.asyncio
async def test_list_tools_without_tools_key_is_empty():
    assert await list_tools(FakeRpcClient({"id": "1", "result": {}})) == []


@pytest.mark.asyncio
async def test_list_tools_rejects_malformed_result():
    with pytest.raises(McpToolError, match="Malformed"):
        await list_tools(FakeRpcClient({"id": "1", "result": {"tools": "nope"}}))


@pytest.mark.asyncio
async def test_call_tool_sends_name_and_input():
    client = FakeRpcClient({"id": "1", "result": {"now": "12:00"}})

    result = await call_tool(client, "time", {"tz": "UTC"})

    assert result == {"now": "12:00"}
    assert client.calls == [("tools/call", {"name": "time", "input": {"tz": "UTC"}})]


@pytest.mark.asyncio
async def test_rpc_error_field_raises():
    with pytest.raises(McpToolError, match="timeout"):
        await call_tool(FakeRpcClient({"id": "1", "error": "timeout"}), "time", {})


@pytest.mark.asyncio
async def test_transport_errors_are_wrapped():
    client = FakeRpcClient(error=httpx.ConnectError("refused"))
    with pytest.raises(McpToolError, match="ConnectError"):
        await call_tool(client, "time", {})


@pytest.mark.asyncio
async def test_list_tools_skips_descriptors_with_wrong_field_types():
    client = FakeRpcClient(
        {
            "id": "1",
            "result": {
                "tools": [
                    {"name": "time", "description": 5},
                    {"name": "echo", "inputSchema": "not an object"},
                    {"name": "clock", "description": "Wall clock"},
                ]
            },
        }
    )

    tools = await list_tools(client)

    assert [tool.name for tool in tools] == ["clock"]
