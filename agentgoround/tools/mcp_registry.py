"""
MCP tool registry calls: `tools/list` and `tools/call`.

Single-shot; no retry at this layer.
"""

import logging
from typing import Any, Dict, List

import httpx
from pydantic import ValidationError

from agentgoround.api.models.mcp_server import McpTool

from .mcp_client import McpSseClient

logger = logging.getLogger(__name__)


class McpToolError(RuntimeError):
    """Transport or RPC failure while talking to a tool server."""


async def _request(client: McpSseClient, method: str, params: Any = None) -> Dict[str, Any]:
    try:
        response = await client.request(method, params)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise McpToolError(f"{type(e).__name__}: {e}") from e
    if response.get("error") is not None:
        raise McpToolError(str(response["error"]))
    return response


async def list_tools(client: McpSseClient) -> List[McpTool]:
    """List tools exposed by the server."""
    response = await _request(client, "tools/list")
    result = response.get("result")
    tools = result.get("tools") if isinstance(result, dict) else None
    if tools is None:
        return []
    if not isinstance(tools, list):
        raise McpToolError("Malformed tools/list result")
    parsed: List[McpTool] = []
    for tool in tools:
        if not isinstance(tool, dict) or not isinstance(tool.get("name"), str):
            continue
        try:
            parsed.append(McpTool.model_validate(tool))
        except ValidationError as e:
            logger.warning("Skipping malformed tool descriptor %r: %s", tool.get("name"), e)
    return parsed


async def call_tool(client: McpSseClient, name: str, input: Any) -> Any:
    """Invoke one tool and return its raw JSON result."""
    response = await _request(client, "tools/call", {"name": name, "input": input})
    return response.get("result")
