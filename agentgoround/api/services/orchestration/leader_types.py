"""Data types for leader-team orchestration."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from agentgoround.providers.types import RetryConfig

from .base import AgentHandle


@dataclass(frozen=True)
class LeaderTeamSettings:
    """Participants and limits for one leader-team session."""

    leader: AgentHandle
    members: List[AgentHandle]
    max_rounds: int = 8
    react_max: int = 2
    retry_max: int = 2
    retry_delay_sec: float = 2.0
    backend_retry: Optional[RetryConfig] = None


@dataclass(frozen=True)
class LeaderRuntimeConfig:
    """Runtime limits for leader-team orchestration."""

    max_rounds: int = 8
    react_max: int = 2
    retry_max: int = 2
    retry_delay_sec: float = 2.0


@dataclass(frozen=True)
class PlanAssignment:
    """One planned delegation: which member, with what message."""

    member_id: str
    message: str = ""


@dataclass
class LeaderPlan:
    """Ordered assignments produced once by the planning call."""

    assignments: List[PlanAssignment]
    notes: Optional[str] = None
    fallback: bool = False


@dataclass(frozen=True)
class AskMember:
    member_id: str
    message: str

    @property
    def type(self) -> str:
        return "ask_member"


@dataclass(frozen=True)
class Finish:
    answer: str

    @property
    def type(self) -> str:
        return "finish"


LeaderAction = Union[AskMember, Finish]


@dataclass(frozen=True)
class ReactRequest:
    """Leader-initiated re-delegation after a failed verification."""

    member_id: str
    message: str


@dataclass(frozen=True)
class VerifyDecision:
    """Leader verdict on one member reply."""

    ok: bool
    reason: Optional[str] = None
    react: Optional[ReactRequest] = None


@dataclass(frozen=True)
class LeaderActionStep:
    """A parsed leader action recorded in the transcript."""

    round: int
    action: LeaderAction


@dataclass(frozen=True)
class MemberReplyStep:
    """A member reply recorded in the transcript."""

    round: int
    member_id: str
    member_name: str
    message: str
    reply: str
    react: bool = False


LeaderStep = Union[LeaderActionStep, MemberReplyStep]


@dataclass
class LeaderRunState:
    """Mutable state owned by one leader-team session."""

    goal: str
    round: int = 0
    steps: List[LeaderStep] = field(default_factory=list)
    react_count: int = 0
    invalid_action_count: int = 0
