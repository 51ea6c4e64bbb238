"""
MCP tool server data models

A tool server is reached over an SSE push channel plus a companion
request/response endpoint derived from the SSE URL.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class McpServerConfig(BaseModel):
    """Configured MCP tool server"""
    id: str = Field(..., description="Server unique identifier")
    name: str = Field(..., description="Server display name")
    sse_url: str = Field(..., description="SSE endpoint URL, e.g. http://localhost:3333/mcp/sse")
    auth_hint: Optional[str] = Field(None, description="Free-form note about authentication")


class McpTool(BaseModel):
    """Tool descriptor returned by `tools/list`"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = Field(default=None, alias="inputSchema")
