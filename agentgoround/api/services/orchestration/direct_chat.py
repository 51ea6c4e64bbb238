"""Direct one-to-one chat with an optional single tool call."""

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from agentgoround.agents.action_parser import extract_json_object
from agentgoround.agents.one_to_one import run_one_to_one
from agentgoround.api.models.document import DocItem
from agentgoround.api.models.mcp_server import McpServerConfig, McpTool
from agentgoround.providers.types import ChatMessage, RetryConfig, make_message
from agentgoround.tools.mcp_bridge import ToolClientFactory, ToolCaller, invoke_tool_action
from agentgoround.tools.mcp_client import McpSseClient
from agentgoround.tools.mcp_registry import call_tool

from .base import AgentHandle, BaseOrchestrator, OrchestrationEvent, OrchestrationRequest
from .goal_driven import normalize_goal_action
from .goal_types import McpCallAction

logger = logging.getLogger(__name__)

TOOL_RESULT_PREFIX = "Tool result received"


@dataclass(frozen=True)
class DirectChatSettings:
    """Agent and attachments for one direct exchange."""

    agent: AgentHandle
    document: Optional[DocItem] = None
    active_server: Optional[McpServerConfig] = None
    active_tools: List[McpTool] = field(default_factory=list)
    backend_retry: Optional[RetryConfig] = None


def build_direct_system(
    base_system: Optional[str],
    document: Optional[DocItem],
    server: Optional[McpServerConfig],
    tools: List[McpTool],
) -> Optional[str]:
    """Combine caller system text with document context and tool instructions."""
    parts: List[str] = []
    if base_system and base_system.strip():
        parts.append(base_system.strip())
    if document is not None:
        parts.append(f"You may use this document as context:\n\n{document.as_context_block()}")
    if server is not None:
        tool_lines = "\n".join(
            f"- {tool.name}" + (f": {tool.description}" if tool.description else "") for tool in tools
        )
        parts.append(
            f"You can use tools from the MCP server {server.name}.\n"
            + (f"Tools:\n{tool_lines}\n" if tool_lines else "")
            + 'To call one, reply with only: {"type":"mcp_call","tool":"<tool name>","input":{...}}'
        )
    return "\n\n".join(parts) if parts else None


class DirectChatOrchestrator(BaseOrchestrator):
    """Streams one reply; an `mcp_call` reply triggers one tool call and one follow-up."""

    mode = "one_to_one"

    def __init__(
        self,
        *,
        llm_call: Callable[..., Awaitable[str]] = run_one_to_one,
        tool_client_factory: ToolClientFactory = McpSseClient,
        tool_caller: ToolCaller = call_tool,
    ):
        self.llm_call = llm_call
        self.tool_client_factory = tool_client_factory
        self.tool_caller = tool_caller

    async def stream(self, request: OrchestrationRequest) -> AsyncIterator[OrchestrationEvent]:
        """Mode-agnostic interface used by orchestrator callers."""
        if request.mode and request.mode != self.mode:
            raise ValueError(f"DirectChatOrchestrator only supports mode={self.mode}")
        if not isinstance(request.settings, DirectChatSettings):
            raise ValueError("DirectChatOrchestrator requires DirectChatSettings")

        async for event in self.process(
            user_message=request.user_message,
            settings=request.settings,
            history=request.history,
            system=request.system,
        ):
            yield self.normalize_event(event)

    async def process(
        self,
        *,
        user_message: str,
        settings: DirectChatSettings,
        history: List[ChatMessage],
        system: Optional[str] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        handle = settings.agent
        server = settings.active_server
        system_text = build_direct_system(system, settings.document, server, settings.active_tools)

        reply = ""
        async for event in self._stream_reply(handle, user_message, history, system_text, settings.backend_retry):
            if event["type"] == "assistant_done":
                reply = event["content"]
            yield event

        action = normalize_goal_action(extract_json_object(reply)) if server is not None else None
        if not isinstance(action, McpCallAction):
            yield {"type": "direct_done", "reason": "reply", "answer": reply}
            return

        tool_input = action.input if action.input is not None else {}
        yield {"type": "tool_call", "tool": action.tool, "input": tool_input, "server_id": server.id}
        tool_message = await invoke_tool_action(
            tool=action.tool,
            tool_input=tool_input,
            active_server=server,
            requested_server_id=action.server_id,
            client_factory=self.tool_client_factory,
            caller=self.tool_caller,
        )
        yield {"type": "message", "kind": "tool", "message": tool_message.model_dump()}

        follow_up_history = list(history) + [
            make_message("user", user_message, "user"),
            make_message("assistant", reply, handle.name),
            tool_message,
        ]
        follow_up_input = (
            f"{TOOL_RESULT_PREFIX}:\n{tool_message.content}\n\n"
            f"Now answer the original request without calling another tool:\n{user_message}"
        )
        answer = ""
        async for event in self._stream_reply(
            handle, follow_up_input, follow_up_history, system_text, settings.backend_retry
        ):
            if event["type"] == "assistant_done":
                answer = event["content"]
            yield event
        yield {"type": "direct_done", "reason": "tool_follow_up", "answer": answer}

    async def _stream_reply(
        self,
        handle: AgentHandle,
        input_text: str,
        history: List[ChatMessage],
        system: Optional[str],
        retry: Optional[RetryConfig],
    ) -> AsyncIterator[Dict[str, Any]]:
        yield {"type": "assistant_start", "agent_id": handle.id, "name": handle.name}

        async def call(on_delta: Callable[[str], None]) -> str:
            return await self.llm_call(
                handle.adapter,
                handle.agent,
                input_text,
                history,
                system=system,
                on_delta=on_delta,
                retry=retry,
                on_log=lambda line: logger.info("[%s] %s", handle.name, line),
            )

        async for kind, text in self.stream_with_deltas(call):
            if kind == "delta":
                yield {"type": "assistant_chunk", "chunk": text}
            else:
                yield {"type": "assistant_done", "content": text}
