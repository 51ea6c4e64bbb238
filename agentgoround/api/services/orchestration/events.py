"""Structured orchestration event models and validation helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict


class _EventBase(BaseModel):
    """Common base for all orchestration events."""

    model_config = ConfigDict(extra="allow")
    type: str


class AssistantStartEvent(_EventBase):
    type: str = "assistant_start"
    agent_id: str
    name: Optional[str] = None


class AssistantChunkEvent(_EventBase):
    type: str = "assistant_chunk"
    chunk: str


class AssistantDoneEvent(_EventBase):
    type: str = "assistant_done"
    content: str


class MessageEvent(_EventBase):
    """A transcript message the UI should render (assistant, tool or final)."""

    type: str = "message"
    kind: str
    message: Dict[str, Any]


class ToolCallEvent(_EventBase):
    type: str = "tool_call"
    tool: str
    input: Any = None
    server_id: Optional[str] = None


class LeaderPlanEvent(_EventBase):
    type: str = "leader_plan"
    assignments: List[Dict[str, Any]]
    fallback: bool = False
    notes: Optional[str] = None


class LeaderRoundStartEvent(_EventBase):
    type: str = "leader_round_start"
    round: int
    max_rounds: int
    planned_member_id: Optional[str] = None


class LeaderDecisionRawEvent(_EventBase):
    type: str = "leader_decision_raw"
    round: int
    text: str


class LeaderInvalidActionEvent(_EventBase):
    type: str = "leader_invalid_action"
    round: int
    text: str
    attempt: int
    retry_max: int


class LeaderAskMemberEvent(_EventBase):
    type: str = "leader_ask_member"
    round: int
    member_id: str
    member_name: str
    message: str


class MemberReplyEvent(_EventBase):
    type: str = "member_reply"
    round: int
    member_id: str
    member_name: str
    reply: str
    react: bool = False


class LeaderVerifyEvent(_EventBase):
    type: str = "leader_verify"
    round: int
    ok: Optional[bool] = None
    reason: Optional[str] = None
    react_member_id: Optional[str] = None


class LeaderReactEvent(_EventBase):
    type: str = "leader_react"
    round: int
    member_id: str
    member_name: str
    message: str
    react_count: int


class LeaderFinalVerificationEvent(_EventBase):
    type: str = "leader_final_verification"
    ok: Optional[bool] = None
    reason: Optional[str] = None


class LeaderFinishEvent(_EventBase):
    type: str = "leader_finish"
    answer: str


class LeaderDoneEvent(_EventBase):
    type: str = "leader_done"
    reason: str
    rounds: int
    answer: str


class DirectDoneEvent(_EventBase):
    type: str = "direct_done"
    reason: str
    answer: str


class GoalTurnStartEvent(_EventBase):
    type: str = "goal_turn_start"
    turn: int
    max_turns: int


class GoalPlanEvent(_EventBase):
    type: str = "goal_plan"
    items: List[Dict[str, Any]]


class GoalExecuteEvent(_EventBase):
    type: str = "goal_execute"
    task: str
    output: str


class GoalReviewEvent(_EventBase):
    type: str = "goal_review"
    task: str
    ok: bool
    notes: Optional[str] = None


class GoalDoneEvent(_EventBase):
    type: str = "goal_done"
    reason: str
    turns: int
    answer: str


class ChatDoneEvent(_EventBase):
    type: str = "chat_done"
    mode: str
    answer: str


class ErrorEvent(_EventBase):
    type: str = "error"
    error: str


OrchestrationEventModel = Union[
    AssistantStartEvent,
    AssistantChunkEvent,
    AssistantDoneEvent,
    MessageEvent,
    ToolCallEvent,
    LeaderPlanEvent,
    LeaderRoundStartEvent,
    LeaderDecisionRawEvent,
    LeaderInvalidActionEvent,
    LeaderAskMemberEvent,
    MemberReplyEvent,
    LeaderVerifyEvent,
    LeaderReactEvent,
    LeaderFinalVerificationEvent,
    LeaderFinishEvent,
    LeaderDoneEvent,
    DirectDoneEvent,
    GoalTurnStartEvent,
    GoalPlanEvent,
    GoalExecuteEvent,
    GoalReviewEvent,
    GoalDoneEvent,
    ChatDoneEvent,
    ErrorEvent,
]


_EVENT_MODEL_BY_TYPE: Dict[str, Type[_EventBase]] = {
    "assistant_start": AssistantStartEvent,
    "assistant_chunk": AssistantChunkEvent,
    "assistant_done": AssistantDoneEvent,
    "message": MessageEvent,
    "tool_call": ToolCallEvent,
    "leader_plan": LeaderPlanEvent,
    "leader_round_start": LeaderRoundStartEvent,
    "leader_decision_raw": LeaderDecisionRawEvent,
    "leader_invalid_action": LeaderInvalidActionEvent,
    "leader_ask_member": LeaderAskMemberEvent,
    "member_reply": MemberReplyEvent,
    "leader_verify": LeaderVerifyEvent,
    "leader_react": LeaderReactEvent,
    "leader_final_verification": LeaderFinalVerificationEvent,
    "leader_finish": LeaderFinishEvent,
    "leader_done": LeaderDoneEvent,
    "direct_done": DirectDoneEvent,
    "goal_turn_start": GoalTurnStartEvent,
    "goal_plan": GoalPlanEvent,
    "goal_execute": GoalExecuteEvent,
    "goal_review": GoalReviewEvent,
    "goal_done": GoalDoneEvent,
    "chat_done": ChatDoneEvent,
    "error": ErrorEvent,
}

TERMINAL_EVENT_TYPES = frozenset({"direct_done", "leader_done", "goal_done", "chat_done"})


def normalize_orchestration_event(event: Union[_EventBase, Mapping[str, Any]]) -> Dict[str, Any]:
    """Validate and normalize one event into plain dict payload."""
    if isinstance(event, _EventBase):
        return event.model_dump(exclude_none=True)

    payload = dict(event)
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("orchestration event must include non-empty string field 'type'")

    model_cls = _EVENT_MODEL_BY_TYPE.get(event_type)
    if model_cls is None:
        raise ValueError(f"unsupported orchestration event type: {event_type}")

    return model_cls.model_validate(payload).model_dump(exclude_none=True)
