"""Base contracts for pluggable orchestration engines."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Tuple,
    Union,
)

from agentgoround.providers.base import BaseAgentAdapter
from agentgoround.providers.types import AgentConfig, ChatMessage

from .events import TERMINAL_EVENT_TYPES, normalize_orchestration_event

OrchestrationMode = Literal["one_to_one", "leader_team", "goal_driven"]


@dataclass(frozen=True)
class AgentHandle:
    """An agent configuration paired with the adapter that talks to it."""

    agent: AgentConfig
    adapter: BaseAgentAdapter

    @property
    def id(self) -> str:
        return self.agent.id

    @property
    def name(self) -> str:
        return self.agent.name


if TYPE_CHECKING:
    # Forward references keep runtime import graph light.
    from .direct_chat import DirectChatSettings
    from .goal_types import GoalDrivenSettings
    from .leader_types import LeaderTeamSettings


OrchestrationSettings = Union[
    "DirectChatSettings",
    "LeaderTeamSettings",
    "GoalDrivenSettings",
]


@dataclass(frozen=True)
class OrchestrationRequest:
    """Normalized orchestration input shared by concrete orchestrators."""

    mode: OrchestrationMode
    user_message: str
    settings: OrchestrationSettings
    history: List[ChatMessage] = field(default_factory=list)
    system: Optional[str] = None
    trace_id: Optional[str] = None


OrchestrationEvent = Dict[str, Any]
DeltaCall = Callable[[Callable[[str], None]], Awaitable[str]]


class BaseOrchestrator(ABC):
    """Abstract base for mode-specific orchestration engines."""

    mode: str = "unknown"

    @abstractmethod
    def stream(self, request: OrchestrationRequest) -> AsyncIterator[OrchestrationEvent]:
        """Run orchestration and yield streaming events."""
        raise NotImplementedError

    async def run(self, request: OrchestrationRequest) -> List[OrchestrationEvent]:
        """Collect all streamed events into a materialized result."""
        events: List[OrchestrationEvent] = []
        async for event in self.stream(request):
            events.append(event)
        return events

    @staticmethod
    def final_answer(events: List[OrchestrationEvent]) -> str:
        """Return the answer carried by the last terminal event, or ''."""
        for event in reversed(events):
            if event.get("type") in TERMINAL_EVENT_TYPES:
                return str(event.get("answer") or "")
        return ""

    @staticmethod
    def normalize_event(event: Dict[str, Any]) -> OrchestrationEvent:
        """Validate one event against the shared event schema."""
        return normalize_orchestration_event(event)

    @staticmethod
    async def stream_with_deltas(call: DeltaCall) -> AsyncIterator[Tuple[str, str]]:
        """
        Run `call(on_delta)` and surface its deltas while it is in flight.

        Yields ("delta", text) tuples as the backend streams and finally
        one ("done", full_text) tuple with the call's return value.
        """
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        task = asyncio.create_task(call(queue.put_nowait))
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield "delta", getter.result()
                    continue
                getter.cancel()
                break
            while not queue.empty():
                yield "delta", queue.get_nowait()
            yield "done", await task
        finally:
            if not task.done():
                task.cancel()
