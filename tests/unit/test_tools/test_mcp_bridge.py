"""Unit tests for turning tool-call actions into tool messages."""

import logging

import pytest

from agentgoround.api.models.mcp_server import McpServerConfig, McpTool
from agentgoround.tools.mcp_bridge import (
    NO_SERVER_MESSAGE,
    fetch_tools,
    format_tool_result,
    invoke_tool_action,
    resolve_target_server,
)
from agentgoround.tools.mcp_registry import McpToolError


class FakeToolClient:
    opened = []

    def __init__(self, server):
        self.server = server
        self.closed = False

    async def __aenter__(self):
        FakeToolClient.opened.append(self)
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def request(self, method, params=None):
        return {"id": "1", "result": {"tools": [{"name": "time"}]}}


@pytest.fixture(autouse=True)
def _reset_clients():
    FakeToolClient.opened = []


def _server(server_id="srv"):
    return McpServerConfig(id=server_id, name="Clock", sse_url="http://localhost:3333/mcp/sse")


def test_format_tool_result_renders_json():
    text = format_tool_result("Clock", "time", {"tz": "UTC"}, {"now": "12:00"})
    assert text.startswith("MCP Clock -> time\ninput:\n{")
    assert text.endswith('output:\n{\n  "now": "12:00"\n}')
    assert format_tool_result("Clock", "echo", "hi", None) == "MCP Clock -> echo\ninput:\nhi\noutput:\nnull"


def test_requested_server_mismatch_is_logged_and_ignored(caplog):
    active = _server()
    with caplog.at_level(logging.WARNING):
        assert resolve_target_server(active, "elsewhere") is active
    assert "elsewhere" in caplog.text
    assert resolve_target_server(None, "elsewhere") is None


@pytest.mark.asyncio
async def test_invoke_tool_action_defaults_missing_input():
    seen = []

    async def caller(client, tool, tool_input):
        seen.append(tool_input)
        return "ok"

    message = await invoke_tool_action(
        tool="time", tool_input=None, active_server=_server(), client_factory=FakeToolClient, caller=caller
    )

    assert seen == [{}]
    assert message.role == "tool"
    assert message.name == "mcp"
    assert message.content == "MCP Clock -> time\ninput:\n{}\noutput:\nok"
    assert FakeToolClient.opened[0].closed is True


@pytest.mark.asyncio
async def test_invoke_tool_action_without_server():
    message = await invoke_tool_action(
        tool="time", tool_input={}, active_server=None, client_factory=FakeToolClient
    )
    assert message.content == NO_SERVER_MESSAGE
    assert FakeToolClient.opened == []


@pytest.mark.asyncio
async def test_invoke_tool_action_turns_tool_error_into_message():
    async def caller(client, tool, tool_input):
        raise McpToolError("HTTP 500")

    message = await invoke_tool_action(
        tool="time", tool_input={}, active_server=_server(), client_factory=FakeToolClient, caller=caller
    )

    assert message.content == "MCP error for time: HTTP 500"
    assert FakeToolClient.opened[0].closed is True


@pytest.mark.asyncio
async def test_fetch_tools_uses_short_lived_client():
    tools = await fetch_tools(_server(), client_factory=FakeToolClient)

    assert tools == [McpTool(name="time")]
    assert FakeToolClient.opened[0].closed is True
