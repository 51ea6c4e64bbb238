"""
Settings management service

Persists UI state and the MCP server list in one YAML file.
"""
from pathlib import Path
from typing import List, Optional

import aiofiles
import yaml

from ..config import settings
from ..models.mcp_server import McpServerConfig
from ..models.ui_state import AppSettings, UiState


class SettingsService:
    """UI state and MCP server list storage"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path or settings.settings_path)
        self._ensure_settings_exist()

    def _ensure_settings_exist(self):
        if self.settings_path.exists():
            return
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(AppSettings().model_dump(mode="json"), f, allow_unicode=True, sort_keys=False)

    async def load_settings(self) -> AppSettings:
        async with aiofiles.open(self.settings_path, "r", encoding="utf-8") as f:
            content = await f.read()
        data = yaml.safe_load(content) or {}
        return AppSettings(**data)

    async def save_settings(self, app_settings: AppSettings):
        """Save settings file (atomic write)"""
        temp_path = self.settings_path.with_suffix(".yaml.tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(
                yaml.safe_dump(app_settings.model_dump(mode="json"), allow_unicode=True, sort_keys=False)
            )
        temp_path.replace(self.settings_path)

    async def get_ui_state(self) -> UiState:
        return (await self.load_settings()).ui

    async def update_ui_state(self, ui: UiState) -> UiState:
        app_settings = await self.load_settings()
        app_settings.ui = ui
        await self.save_settings(app_settings)
        return ui

    async def get_mcp_servers(self) -> List[McpServerConfig]:
        return (await self.load_settings()).mcp_servers

    async def get_mcp_server(self, server_id: str) -> Optional[McpServerConfig]:
        for server in await self.get_mcp_servers():
            if server.id == server_id:
                return server
        return None

    async def set_mcp_servers(self, servers: List[McpServerConfig]) -> List[McpServerConfig]:
        """
        Replace the MCP server list.

        Raises:
            ValueError: If two servers share an id
        """
        seen = set()
        for server in servers:
            if server.id in seen:
                raise ValueError(f"Duplicate MCP server id '{server.id}'")
            seen.add(server.id)
        app_settings = await self.load_settings()
        app_settings.mcp_servers = list(servers)
        if app_settings.ui.active_mcp_server_id and app_settings.ui.active_mcp_server_id not in seen:
            app_settings.ui.active_mcp_server_id = None
        await self.save_settings(app_settings)
        return app_settings.mcp_servers
