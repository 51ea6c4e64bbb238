"""
Tools module - MCP tool-server transport, registry calls and the action bridge.
"""

from .mcp_bridge import NO_SERVER_MESSAGE, fetch_tools, invoke_tool_action
from .mcp_client import McpSseClient
from .mcp_registry import McpToolError, call_tool, list_tools

__all__ = [
    "McpSseClient",
    "McpToolError",
    "NO_SERVER_MESSAGE",
    "call_tool",
    "fetch_tools",
    "invoke_tool_action",
    "list_tools",
]
