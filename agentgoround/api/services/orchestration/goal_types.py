"""Data types for goal-driven orchestration."""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from agentgoround.api.models.document import DocItem
from agentgoround.api.models.mcp_server import McpServerConfig, McpTool
from agentgoround.providers.types import ChatMessage, RetryConfig

from .base import AgentHandle


@dataclass(frozen=True)
class GoalDrivenSettings:
    """Agent, attachments and limits for one goal-driven session."""

    agent: AgentHandle
    max_turns: int = 8
    document: Optional[DocItem] = None
    active_server: Optional[McpServerConfig] = None
    active_tools: List[McpTool] = field(default_factory=list)
    backend_retry: Optional[RetryConfig] = None


@dataclass(frozen=True)
class PlanItem:
    goal: str
    agent: Optional[str] = None


@dataclass(frozen=True)
class PlanAction:
    items: List[PlanItem]

    @property
    def type(self) -> str:
        return "plan"


@dataclass(frozen=True)
class ThinkAction:
    thought: str

    @property
    def type(self) -> str:
        return "think"


@dataclass(frozen=True)
class DocLookupAction:
    query: Optional[str] = None

    @property
    def type(self) -> str:
        return "doc_lookup"


@dataclass(frozen=True)
class McpCallAction:
    tool: str
    input: Any = None
    server_id: Optional[str] = None

    @property
    def type(self) -> str:
        return "mcp_call"


@dataclass(frozen=True)
class ExecuteAction:
    task: str
    output: str

    @property
    def type(self) -> str:
        return "execute"


@dataclass(frozen=True)
class ReviewAction:
    task: str
    ok: bool
    notes: Optional[str] = None

    @property
    def type(self) -> str:
        return "review"


@dataclass(frozen=True)
class FinalAction:
    answer: str

    @property
    def type(self) -> str:
        return "final"


GoalAction = Union[
    PlanAction,
    ThinkAction,
    DocLookupAction,
    McpCallAction,
    ExecuteAction,
    ReviewAction,
    FinalAction,
]


@dataclass
class GoalRunState:
    """Mutable state owned by one goal-driven session."""

    goal: str
    session: List[ChatMessage]
    turn: int = 0
    plan: List[PlanItem] = field(default_factory=list)
    executed: List[ExecuteAction] = field(default_factory=list)
    reviews: List[ReviewAction] = field(default_factory=list)

    @property
    def has_plan(self) -> bool:
        return bool(self.plan)
