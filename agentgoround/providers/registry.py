"""
Adapter Registry

Maps agent types to adapter instances.
"""
from typing import Dict

from .adapters import CustomAdapter, OpenAICompatAdapter
from .base import BaseAgentAdapter
from .types import AgentConfig, AgentType


class AdapterRegistry:
    """Resolves the adapter for an agent; unknown types use the OpenAI-compatible one."""

    def __init__(self):
        self._adapters: Dict[AgentType, BaseAgentAdapter] = {
            AgentType.OPENAI_COMPAT: OpenAICompatAdapter(),
            AgentType.CUSTOM: CustomAdapter(),
        }

    def register(self, agent_type: AgentType, adapter: BaseAgentAdapter) -> None:
        self._adapters[agent_type] = adapter

    def get(self, agent: AgentConfig) -> BaseAgentAdapter:
        return self._adapters.get(agent.type, self._adapters[AgentType.OPENAI_COMPAT])


_registry = AdapterRegistry()


def get_adapter_registry() -> AdapterRegistry:
    return _registry


def get_adapter(agent: AgentConfig) -> BaseAgentAdapter:
    """Pick the adapter for an agent."""
    return _registry.get(agent)
