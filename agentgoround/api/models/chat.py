"""
Chat request models
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from agentgoround.providers.types import ChatMessage

from .ui_state import OrchestratorMode


class ChatStreamRequest(BaseModel):
    """
    Request for one chat turn.

    Selections left unset fall back to the persisted UI state.
    """
    message: str = Field(..., min_length=1, description="User message (a goal in leader_team/goal_driven)")
    history: List[ChatMessage] = Field(default_factory=list, description="Prior conversation")
    mode: Optional[OrchestratorMode] = Field(None, description="Protocol override")
    active_agent_id: Optional[str] = Field(None, description="Agent (or leader) override")
    member_agent_ids: Optional[List[str]] = Field(None, description="Leader-team members override")
    doc_id: Optional[str] = Field(None, description="Attached document override")
    mcp_server_id: Optional[str] = Field(None, description="Active MCP server override")
    system: Optional[str] = Field(None, description="Extra system text")
