"""
Agent configuration management service

Handles loading, saving, and managing agent (backend) configurations
"""
import logging
from pathlib import Path
from typing import List, Optional

import aiofiles
import yaml

from agentgoround.providers.types import AgentConfig

from ..config import settings
from ..models.agent_config import AgentsConfig

logger = logging.getLogger(__name__)


class AgentConfigService:
    """Agent configuration management service"""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize agent configuration service

        Args:
            config_path: Configuration file path, defaults to settings.agents_config_path
        """
        self.config_path = Path(config_path or settings.agents_config_path)
        self._ensure_config_exists()

    def _ensure_config_exists(self):
        """Ensure configuration file exists, create an empty one if not"""
        if self.config_path.exists():
            return
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"agents": []}, f, allow_unicode=True, sort_keys=False)

    async def load_config(self) -> AgentsConfig:
        """Load configuration file"""
        async with aiofiles.open(self.config_path, "r", encoding="utf-8") as f:
            content = await f.read()
        data = yaml.safe_load(content) or {}
        return AgentsConfig(**data)

    async def save_config(self, config: AgentsConfig):
        """
        Save configuration file (atomic write)

        Uses temporary file + replace for atomicity
        """
        temp_path = self.config_path.with_suffix(".yaml.tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            # Use mode='json' to serialize enums as values
            content = yaml.safe_dump(
                config.model_dump(mode="json"),
                allow_unicode=True,
                sort_keys=False,
            )
            await f.write(content)

        temp_path.replace(self.config_path)

    async def get_agents(self) -> List[AgentConfig]:
        """Get all agents, newest first"""
        config = await self.load_config()
        return config.agents

    async def get_agent(self, agent_id: str) -> Optional[AgentConfig]:
        """
        Get specified agent

        Returns:
            AgentConfig or None if not found
        """
        config = await self.load_config()
        for agent in config.agents:
            if agent.id == agent_id:
                return agent
        return None

    async def upsert_agent(self, agent: AgentConfig) -> AgentConfig:
        """
        Insert or replace an agent.

        New agents go to the front of the list; existing ones keep their position.
        """
        config = await self.load_config()
        for index, existing in enumerate(config.agents):
            if existing.id == agent.id:
                config.agents[index] = agent
                break
        else:
            config.agents.insert(0, agent)
        await self.save_config(config)
        logger.info("Saved agent %s (%s)", agent.id, agent.name)
        return agent

    async def delete_agent(self, agent_id: str) -> bool:
        """
        Delete agent

        Returns:
            True if an agent was removed; unknown ids are a no-op
        """
        config = await self.load_config()
        remaining = [agent for agent in config.agents if agent.id != agent_id]
        if len(remaining) == len(config.agents):
            return False
        config.agents = remaining
        await self.save_config(config)
        return True
