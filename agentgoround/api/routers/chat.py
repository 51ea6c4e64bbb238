"""Chat API endpoints."""

import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from agentgoround.providers.registry import get_adapter
from agentgoround.tools.mcp_bridge import fetch_tools
from agentgoround.tools.mcp_client import McpSseClient

from ..config import settings
from ..models.chat import ChatStreamRequest
from ..models.mcp_server import McpServerConfig
from ..services.agent_config_service import AgentConfigService
from ..services.chat_dispatch_service import ChatDispatchDeps, ChatDispatchService
from ..services.document_service import DocumentService
from ..services.orchestration import (
    DirectChatOrchestrator,
    GoalDrivenOrchestrator,
    LeaderTeamOrchestrator,
)
from ..services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def _client_factory(server: McpServerConfig) -> McpSseClient:
    return McpSseClient(server, timeout=settings.mcp_request_timeout_seconds)


async def _fetch_tools(server: McpServerConfig):
    return await fetch_tools(server, client_factory=_client_factory)


def get_chat_dispatch_service() -> ChatDispatchService:
    """Dependency injection for ChatDispatchService."""
    return ChatDispatchService(
        ChatDispatchDeps(
            agent_config_service=AgentConfigService(),
            settings_service=SettingsService(),
            document_service=DocumentService(),
            get_adapter=get_adapter,
            fetch_tools=_fetch_tools,
            create_direct_orchestrator=lambda: DirectChatOrchestrator(tool_client_factory=_client_factory),
            create_leader_team_orchestrator=lambda: LeaderTeamOrchestrator(
                trace_preview_chars=settings.trace_preview_chars
            ),
            create_goal_driven_orchestrator=lambda: GoalDrivenOrchestrator(
                tool_client_factory=_client_factory,
                trace_preview_chars=settings.trace_preview_chars,
            ),
        )
    )


@router.post("/chat/stream")
async def chat_stream(
    request: ChatStreamRequest,
    dispatcher: ChatDispatchService = Depends(get_chat_dispatch_service),
):
    """Run one chat turn and stream its events.

    Returns:
        StreamingResponse with Server-Sent Events, one JSON event per
        `data:` frame, terminated by `data: [DONE]`
    """

    async def event_generator():
        async for event in dispatcher.stream(request):
            yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
