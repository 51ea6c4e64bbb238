"""Chat dispatch: resolve selections and run the chosen protocol as one event stream."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from agentgoround.providers.base import BaseAgentAdapter
from agentgoround.providers.types import AgentConfig, RetryConfig, make_message
from agentgoround.tools.mcp_registry import McpToolError

from ..config import settings
from ..models.chat import ChatStreamRequest
from ..models.document import DocItem
from ..models.mcp_server import McpServerConfig, McpTool
from ..models.ui_state import UiState
from .agent_config_service import AgentConfigService
from .document_service import DocumentService
from .orchestration import (
    AgentHandle,
    BaseOrchestrator,
    DirectChatSettings,
    GoalDrivenSettings,
    LeaderTeamSettings,
    OrchestrationPolicy,
    OrchestrationRequest,
)
from .orchestration.direct_chat import build_direct_system
from .orchestration.leader_team import NO_MEMBERS_ANSWER
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

StreamEvent = Dict[str, Any]
NO_AGENT_ANSWER = "No agent configured. Add an agent first."


@dataclass(frozen=True)
class ChatDispatchDeps:
    """Dependencies required by ChatDispatchService."""

    agent_config_service: AgentConfigService
    settings_service: SettingsService
    document_service: DocumentService
    get_adapter: Callable[[AgentConfig], BaseAgentAdapter]
    fetch_tools: Callable[[McpServerConfig], Awaitable[List[McpTool]]]
    create_direct_orchestrator: Callable[[], BaseOrchestrator]
    create_leader_team_orchestrator: Callable[[], BaseOrchestrator]
    create_goal_driven_orchestrator: Callable[[], BaseOrchestrator]


class ChatDispatchService:
    """Maps one user turn onto direct chat, leader-team or goal-driven orchestration."""

    def __init__(self, deps: ChatDispatchDeps):
        self.deps = deps

    async def stream(self, request: ChatStreamRequest) -> AsyncIterator[StreamEvent]:
        """
        Yield orchestration events and one terminal `chat_done` event.

        Unexpected failures become an `error` event followed by `chat_done`
        whose answer is `[ERROR]\\n<message>`; events already yielded stand.
        """
        mode = request.mode or "one_to_one"
        answer = ""
        try:
            ui = await self.deps.settings_service.get_ui_state()
            mode = request.mode or ui.mode
            trace_id = uuid.uuid4().hex[:8]
            logger.info("Chat turn %s started (mode=%s)", trace_id, mode)

            orchestration_request = await self._build_request(request, ui, mode, trace_id)
            if isinstance(orchestration_request, str):
                answer = orchestration_request
                yield {
                    "type": "message",
                    "kind": "assistant",
                    "message": make_message("assistant", answer, "system").model_dump(),
                }
            else:
                orchestrator = self._create_orchestrator(mode)
                async for event in orchestrator.stream(orchestration_request):
                    if event.get("type") in ("direct_done", "leader_done", "goal_done"):
                        answer = str(event.get("answer") or "")
                    yield event
            yield {"type": "chat_done", "mode": mode, "answer": answer}
        except Exception as e:
            logger.exception("Chat turn failed (mode=%s)", mode)
            message = str(e) or type(e).__name__
            yield {"type": "error", "error": message}
            yield {"type": "chat_done", "mode": mode, "answer": f"[ERROR]\n{message}"}

    def _create_orchestrator(self, mode: str) -> BaseOrchestrator:
        if mode == "leader_team":
            return self.deps.create_leader_team_orchestrator()
        if mode == "goal_driven":
            return self.deps.create_goal_driven_orchestrator()
        return self.deps.create_direct_orchestrator()

    async def _build_request(
        self,
        request: ChatStreamRequest,
        ui: UiState,
        mode: str,
        trace_id: str,
    ) -> OrchestrationRequest | str:
        """Resolve selections; a plain string means the turn ends with that notice."""
        agents = await self.deps.agent_config_service.get_agents()
        if not agents:
            return NO_AGENT_ANSWER
        agent_by_id = {agent.id: agent for agent in agents}
        active_id = request.active_agent_id or ui.active_agent_id
        active = agent_by_id.get(active_id) if active_id else None
        if active is None:
            active = agents[0]

        retry = RetryConfig(
            delay_sec=OrchestrationPolicy.resolve_retry_delay(
                ui.retry_delay_sec, fallback=settings.default_retry_delay_sec
            ),
            max=OrchestrationPolicy.resolve_retry_max(ui.retry_max, fallback=settings.default_retry_max),
        )
        document = await self._resolve_document(request.doc_id or ui.active_doc_id, active)

        if mode == "leader_team":
            member_ids = request.member_agent_ids if request.member_agent_ids is not None else ui.member_agent_ids
            members = [
                self._handle(agent_by_id[member_id])
                for member_id in member_ids
                if member_id in agent_by_id and member_id != active.id
            ]
            if not members:
                return NO_MEMBERS_ANSWER
            return OrchestrationRequest(
                mode="leader_team",
                user_message=request.message,
                history=list(request.history),
                system=build_direct_system(request.system, document, None, []),
                trace_id=trace_id,
                settings=LeaderTeamSettings(
                    leader=self._handle(active),
                    members=members,
                    max_rounds=OrchestrationPolicy.resolve_max_rounds(
                        ui.max_rounds, fallback=settings.default_max_rounds
                    ),
                    react_max=OrchestrationPolicy.resolve_react_max(
                        ui.react_max, fallback=settings.default_react_max
                    ),
                    retry_max=retry.max,
                    retry_delay_sec=retry.delay_sec,
                    backend_retry=retry,
                ),
            )

        server = await self._resolve_server(request.mcp_server_id or ui.active_mcp_server_id, active)
        tools = await self._list_tools(server)

        if mode == "goal_driven":
            return OrchestrationRequest(
                mode="goal_driven",
                user_message=request.message,
                history=list(request.history),
                system=request.system,
                trace_id=trace_id,
                settings=GoalDrivenSettings(
                    agent=self._handle(active),
                    max_turns=OrchestrationPolicy.resolve_max_turns(
                        ui.max_turns, fallback=settings.default_max_turns
                    ),
                    document=document,
                    active_server=server,
                    active_tools=tools,
                    backend_retry=retry,
                ),
            )

        return OrchestrationRequest(
            mode="one_to_one",
            user_message=request.message,
            history=list(request.history),
            system=request.system,
            trace_id=trace_id,
            settings=DirectChatSettings(
                agent=self._handle(active),
                document=document,
                active_server=server,
                active_tools=tools,
                backend_retry=retry,
            ),
        )

    def _handle(self, agent: AgentConfig) -> AgentHandle:
        return AgentHandle(agent=agent, adapter=self.deps.get_adapter(agent))

    async def _resolve_document(self, doc_id: Optional[str], agent: AgentConfig) -> Optional[DocItem]:
        if not doc_id:
            return None
        if agent.allowed_doc_ids and doc_id not in agent.allowed_doc_ids:
            logger.info("Document %s is not allowed for agent %s; ignoring it", doc_id, agent.id)
            return None
        document = await self.deps.document_service.get_document(doc_id)
        if document is None:
            logger.warning("Selected document %s no longer exists", doc_id)
        return document

    async def _resolve_server(self, server_id: Optional[str], agent: AgentConfig) -> Optional[McpServerConfig]:
        """Active server, only when the agent may use it."""
        if not server_id:
            return None
        if not (agent.capabilities.mcp or server_id in agent.allowed_mcp_server_ids):
            return None
        server = await self.deps.settings_service.get_mcp_server(server_id)
        if server is None:
            logger.warning("Selected MCP server %s no longer exists", server_id)
        return server

    async def _list_tools(self, server: Optional[McpServerConfig]) -> List[McpTool]:
        if server is None:
            return []
        try:
            return await self.deps.fetch_tools(server)
        except McpToolError as e:
            logger.warning("Could not list tools of MCP server %s: %s", server.id, e)
            return []
