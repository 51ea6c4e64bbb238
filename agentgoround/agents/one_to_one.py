"""Single request/response exchange with one agent backend."""

import logging
from typing import Callable, List, Optional

from agentgoround.providers.base import BaseAgentAdapter, ChatRequest, LogSink
from agentgoround.providers.types import AgentConfig, ChatMessage, RetryConfig
from agentgoround.utils.llm_logger import get_llm_logger

logger = logging.getLogger(__name__)

DeltaSink = Callable[[str], None]


def _ignore_delta(_text: str) -> None:
    return None


async def run_one_to_one(
    adapter: BaseAgentAdapter,
    agent: AgentConfig,
    input: str,
    history: List[ChatMessage],
    system: Optional[str] = None,
    on_delta: Optional[DeltaSink] = None,
    retry: Optional[RetryConfig] = None,
    on_log: Optional[LogSink] = None,
) -> str:
    """
    Run one backend exchange and return the complete text.

    Delta events are accumulated and forwarded to `on_delta`; a `done`
    event replaces the accumulated text. The result may be an adapter
    error message serialized as text.

    Args:
        adapter: Backend adapter for the agent
        agent: Agent configuration
        input: User-turn text
        history: Prior conversation replayed to the backend
        system: Optional system text
        on_delta: Sink for incremental text
        retry: Backend retry policy for transient failures
        on_log: Sink for adapter log lines (retry attempts)

    Returns:
        Final text of the exchange
    """
    sink = on_delta or _ignore_delta
    full = ""
    request = ChatRequest(
        agent=agent,
        input=input,
        history=list(history),
        system=system,
        retry=retry,
        on_log=on_log,
    )
    async for event in adapter.chat(request):
        if event.type == "delta":
            full += event.text
            sink(event.text)
        else:
            full = event.text

    get_llm_logger().log_exchange(
        agent_name=agent.name,
        input_text=input,
        history_size=len(history),
        system=system,
        output_text=full,
    )
    return full
