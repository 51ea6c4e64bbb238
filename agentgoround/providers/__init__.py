"""
Agent backend abstraction layer.

Adapters turn "input + history + system text" into a stream of chat events.
"""
from .base import BaseAgentAdapter, ChatRequest
from .registry import AdapterRegistry, get_adapter, get_adapter_registry
from .types import (
    AgentCapabilities,
    AgentConfig,
    AgentType,
    ChatEvent,
    ChatMessage,
    CustomTemplate,
    DetectResult,
    RetryConfig,
    make_message,
)

__all__ = [
    "BaseAgentAdapter",
    "ChatRequest",
    "AdapterRegistry",
    "get_adapter",
    "get_adapter_registry",
    "AgentCapabilities",
    "AgentConfig",
    "AgentType",
    "ChatEvent",
    "ChatMessage",
    "CustomTemplate",
    "DetectResult",
    "RetryConfig",
    "make_message",
]
