"""
MCP tool server API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from agentgoround.tools.mcp_bridge import fetch_tools
from agentgoround.tools.mcp_client import McpSseClient
from agentgoround.tools.mcp_registry import McpToolError

from ..config import settings
from ..models.mcp_server import McpServerConfig, McpTool
from ..services.settings_service import SettingsService
from .settings import get_settings_service

router = APIRouter(prefix="/api/mcp", tags=["mcp"])


def _client_factory(server: McpServerConfig) -> McpSseClient:
    return McpSseClient(server, timeout=settings.mcp_request_timeout_seconds)


@router.get("/servers", response_model=List[McpServerConfig])
async def list_servers(service: SettingsService = Depends(get_settings_service)):
    return await service.get_mcp_servers()


@router.put("/servers", response_model=List[McpServerConfig])
async def replace_servers(
    servers: List[McpServerConfig],
    service: SettingsService = Depends(get_settings_service),
):
    """Replace the configured server list"""
    try:
        return await service.set_mcp_servers(servers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/servers/{server_id}/tools", response_model=List[McpTool])
async def list_server_tools(server_id: str, service: SettingsService = Depends(get_settings_service)):
    """Run `tools/list` against one server"""
    server = await service.get_mcp_server(server_id)
    if not server:
        raise HTTPException(status_code=404, detail=f"MCP server '{server_id}' not found")
    try:
        return await fetch_tools(server, client_factory=_client_factory)
    except McpToolError as e:
        raise HTTPException(status_code=502, detail=str(e))
