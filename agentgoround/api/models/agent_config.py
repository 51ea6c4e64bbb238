"""
Agent configuration file model
"""
from typing import List

from pydantic import BaseModel, Field

from agentgoround.providers.types import AgentConfig


class AgentsConfig(BaseModel):
    """Complete agents configuration"""
    agents: List[AgentConfig] = Field(default_factory=list)
