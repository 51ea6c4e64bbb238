"""
Base Agent Adapter

Abstract base class for backend adapters.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional

from .types import AgentConfig, ChatEvent, ChatMessage, DetectResult, RetryConfig


LogSink = Callable[[str], None]


@dataclass
class ChatRequest:
    """Everything an adapter needs for one completion."""

    agent: AgentConfig
    input: str
    history: List[ChatMessage] = field(default_factory=list)
    system: Optional[str] = None
    retry: Optional[RetryConfig] = None
    on_log: Optional[LogSink] = None

    def log(self, text: str) -> None:
        if self.on_log:
            self.on_log(text)


class BaseAgentAdapter(ABC):
    """
    Abstract base class for agent adapters.

    Each adapter normalizes a provider-specific protocol (SSE frames,
    single-shot JSON bodies) into a stream of `delta` events followed by
    exactly one `done` event.
    """

    @abstractmethod
    def chat(self, request: ChatRequest) -> AsyncIterator[ChatEvent]:
        """
        Stream a completion.

        Args:
            request: Input, history, optional system text and retry policy

        Yields:
            ChatEvent objects; the final one has type "done"
        """
        raise NotImplementedError

    async def detect(self, agent: AgentConfig) -> DetectResult:
        """
        Check that the agent endpoint is reachable.

        Returns:
            DetectResult describing what was found
        """
        return DetectResult(ok=False, detected_type="unknown", notes="No detect()")
