"""Unit tests for the MCP SSE client."""

import json

import pytest
import respx
from httpx import Response

from agentgoround.api.models.mcp_server import McpServerConfig
from agentgoround.tools.mcp_client import McpSseClient, rpc_url_for

SSE_URL = "http://mcp.test/mcp/sse"
RPC_URL = "http://mcp.test/mcp/rpc"


def _server():
    return McpServerConfig(id="srv", name="Test", sse_url=SSE_URL)


def test_rpc_url_replaces_trailing_sse_segment():
    assert rpc_url_for(SSE_URL) == RPC_URL
    assert rpc_url_for("http://mcp.test/sse?token=abc") == "http://mcp.test/rpc?token=abc"
    assert rpc_url_for("http://mcp.test/events") == "http://mcp.test/events"


@pytest.mark.asyncio
async def test_request_returns_immediate_post_result():
    captured = {}

    def handler(request):
        captured["json"] = json.loads(request.content.decode("utf-8"))
        return Response(200, json={"id": "r1", "result": {"tools": []}})

    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(SSE_URL).mock(return_value=Response(200, text=""))
        respx_mock.post(RPC_URL).mock(side_effect=handler)
        async with McpSseClient(_server(), id_factory=lambda: "r1") as client:
            response = await client.request("tools/list")

    assert response == {"id": "r1", "result": {"tools": []}}
    assert captured["json"] == {"id": "r1", "method": "tools/list"}


@pytest.mark.asyncio
async def test_request_reports_http_status_errors():
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(SSE_URL).mock(return_value=Response(200, text=""))
        respx_mock.post(RPC_URL).mock(return_value=Response(500, text="boom"))
        async with McpSseClient(_server(), id_factory=lambda: "r1") as client:
            response = await client.request("tools/call", {"name": "time", "input": {}})

    assert response == {"id": "r1", "error": "HTTP 500"}


@pytest.mark.asyncio
async def test_request_matches_reply_pushed_over_sse():
    frame = 'event: message\ndata: {"id": "r7", "result": {"now": "12:00"}}\n\n'
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(SSE_URL).mock(
            return_value=Response(200, text=frame, headers={"Content-Type": "text/event-stream"})
        )
        respx_mock.post(RPC_URL).mock(return_value=Response(202))
        async with McpSseClient(_server(), id_factory=lambda: "r7", timeout=2.0) as client:
            response = await client.request("tools/call", {"name": "time", "input": {}})

    assert response == {"id": "r7", "result": {"now": "12:00"}}


@pytest.mark.asyncio
async def test_request_times_out_without_reply():
    logs = []
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(SSE_URL).mock(return_value=Response(200, text=""))
        respx_mock.post(RPC_URL).mock(return_value=Response(202))
        async with McpSseClient(
            _server(), id_factory=lambda: "r1", timeout=0.05, on_log=logs.append
        ) as client:
            response = await client.request("tools/list")

    assert response == {"id": "r1", "error": "timeout"}
    assert any("timed out" in line for line in logs)


@pytest.mark.asyncio
async def test_close_is_safe_to_repeat():
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(SSE_URL).mock(return_value=Response(200, text=""))
        client = McpSseClient(_server())
        await client.connect()
        assert client.connected
        await client.close()
        await client.close()

    assert not client.connected
