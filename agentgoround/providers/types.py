"""
Provider Types and Data Models

Defines enums and Pydantic models shared by backend adapters and orchestrators.
"""
import time
import uuid
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class AgentType(str, Enum):
    """Supported backend adapter types"""
    OPENAI_COMPAT = "openai_compat"   # OpenAI and compatible chat/completions APIs
    CUSTOM = "custom"                 # Generic templated HTTP endpoint


Role = Literal["system", "user", "assistant", "tool"]


class CustomTemplate(BaseModel):
    """Request template for the custom HTTP adapter."""
    method: Literal["POST"] = Field(default="POST", description="HTTP method")
    url: str = Field(..., description="Target URL")
    body_template: str = Field(..., description="Body with {{input}} {{history}} {{model}} placeholders")
    response_json_path: str = Field(
        default="$.choices[0].message.content",
        description="Path of the reply text inside the JSON response",
    )


class AgentCapabilities(BaseModel):
    """Agent capability declaration"""
    streaming: bool = Field(default=True, description="Supports streaming output")
    tools: bool = Field(default=False, description="Supports tool calling")
    mcp: bool = Field(default=False, description="May use MCP tool servers")


class AgentConfig(BaseModel):
    """
    Agent configuration (stored in config file).

    Pairs a model configuration with the adapter type that talks to it.
    Orchestrators never look past `id`, `name` and `type`.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique identifier")
    name: str = Field(..., description="Display name")
    type: AgentType = Field(default=AgentType.OPENAI_COMPAT, description="Adapter type")
    description: Optional[str] = Field(default=None, description="Agent description")

    endpoint: Optional[str] = Field(default=None, description="API base URL, e.g. https://api.openai.com/v1")
    api_key: Optional[str] = Field(default=None, description="API key")
    model: Optional[str] = Field(default=None, description="Model name for openai_compat agents")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    custom: Optional[CustomTemplate] = Field(default=None, description="Template for custom agents")
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)

    allowed_doc_ids: List[str] = Field(default_factory=list)
    allowed_mcp_server_ids: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("agent name cannot be empty")
        return value


class DetectResult(BaseModel):
    """Outcome of probing an agent endpoint."""
    ok: bool
    detected_type: Literal["openai_compat", "unknown"] = "unknown"
    notes: Optional[str] = None


class RetryConfig(BaseModel):
    """Backend retry policy for transient failures."""
    delay_sec: float = Field(default=0.0, ge=0.0)
    max: int = Field(default=0, ge=0)


class ChatEvent(BaseModel):
    """
    One event of a backend exchange.

    `delta` events carry incremental text; the `done` event carries the
    authoritative final text even when deltas were also emitted.
    """
    type: Literal["delta", "done"]
    text: str = ""


class ChatMessage(BaseModel):
    """Append-only conversational unit."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Role
    content: str
    name: Optional[str] = None
    ts: int = Field(default_factory=lambda: int(time.time() * 1000))


def make_message(role: Role, content: str, name: Optional[str] = None) -> ChatMessage:
    """Build a new chat message stamped with a fresh id and timestamp."""
    return ChatMessage(role=role, content=content, name=name)
