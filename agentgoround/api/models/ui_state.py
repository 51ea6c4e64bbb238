"""
UI state data models

Persisted chat-surface selections and protocol tuning knobs.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .mcp_server import McpServerConfig


OrchestratorMode = Literal["one_to_one", "leader_team", "goal_driven"]


class UiState(BaseModel):
    """Persisted UI selections"""
    mode: OrchestratorMode = Field(default="one_to_one", description="Active chat protocol")
    active_agent_id: Optional[str] = Field(None, description="Agent used for one_to_one/goal_driven, leader for leader_team")
    member_agent_ids: List[str] = Field(default_factory=list, description="Member agents for leader_team")
    active_doc_id: Optional[str] = Field(None, description="Document attached to the chat")
    active_mcp_server_id: Optional[str] = Field(None, description="Active MCP tool server")
    max_rounds: Optional[int] = Field(None, description="Leader-team round limit")
    max_turns: Optional[int] = Field(None, description="Goal-driven turn limit")
    react_max: Optional[int] = Field(None, description="Leader-team re-delegation budget")
    retry_delay_sec: Optional[float] = Field(None, description="Delay between retries in seconds")
    retry_max: Optional[int] = Field(None, description="Retries for invalid actions and transient backend failures")


class AppSettings(BaseModel):
    """Complete settings file"""
    ui: UiState = Field(default_factory=UiState)
    mcp_servers: List[McpServerConfig] = Field(default_factory=list)
