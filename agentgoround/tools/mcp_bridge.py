"""Turn a tool-call action into one MCP call and a `tool` chat message."""

import logging
from typing import Any, Awaitable, Callable, List, Optional

from agentgoround.api.models.mcp_server import McpServerConfig, McpTool
from agentgoround.providers.types import ChatMessage, make_message
from agentgoround.utils.log_utils import stringify_any

from .mcp_client import McpSseClient
from .mcp_registry import McpToolError, call_tool, list_tools

logger = logging.getLogger(__name__)

ToolClientFactory = Callable[[McpServerConfig], McpSseClient]
ToolCaller = Callable[[McpSseClient, str, Any], Awaitable[Any]]

TOOL_MESSAGE_NAME = "mcp"
NO_SERVER_MESSAGE = "MCP call skipped: no active MCP server selected."


def format_tool_result(server_name: str, tool: str, tool_input: Any, output: Any) -> str:
    return (
        f"MCP {server_name} -> {tool}\n"
        f"input:\n{stringify_any(tool_input)}\n"
        f"output:\n{stringify_any(output)}"
    )


def format_tool_error(tool: str, error: BaseException) -> str:
    return f"MCP error for {tool}: {error}"


def resolve_target_server(
    active_server: Optional[McpServerConfig],
    requested_server_id: Optional[str] = None,
) -> Optional[McpServerConfig]:
    """Always the active server; a different requested id is only logged."""
    if active_server is not None and requested_server_id and requested_server_id != active_server.id:
        logger.warning(
            "Tool call requested server %r but only the active server %r is routable",
            requested_server_id,
            active_server.id,
        )
    return active_server


async def invoke_tool_action(
    *,
    tool: str,
    tool_input: Any,
    active_server: Optional[McpServerConfig],
    requested_server_id: Optional[str] = None,
    client_factory: ToolClientFactory = McpSseClient,
    caller: ToolCaller = call_tool,
) -> ChatMessage:
    """
    Run one tool call against the active server.

    The client is opened and closed around exactly this call. Failures are
    returned as an error-text tool message instead of raised.
    """
    server = resolve_target_server(active_server, requested_server_id)
    if server is None:
        return make_message("tool", NO_SERVER_MESSAGE, TOOL_MESSAGE_NAME)

    payload = tool_input if tool_input is not None else {}
    try:
        async with client_factory(server) as client:
            output = await caller(client, tool, payload)
    except McpToolError as e:
        logger.warning("MCP tool %s failed on %s: %s", tool, server.id, e)
        return make_message("tool", format_tool_error(tool, e), TOOL_MESSAGE_NAME)
    return make_message("tool", format_tool_result(server.name, tool, payload, output), TOOL_MESSAGE_NAME)


async def fetch_tools(
    server: McpServerConfig,
    *,
    client_factory: ToolClientFactory = McpSseClient,
) -> List[McpTool]:
    """List the tools of one server with a short-lived client."""
    async with client_factory(server) as client:
        return await list_tools(client)
