"""Orchestration primitives."""

from .base import (
    AgentHandle,
    BaseOrchestrator,
    OrchestrationEvent,
    OrchestrationMode,
    OrchestrationRequest,
    OrchestrationSettings,
)
from .direct_chat import DirectChatOrchestrator, DirectChatSettings
from .goal_driven import GoalDrivenOrchestrator, normalize_goal_action
from .goal_types import GoalDrivenSettings, GoalRunState
from .leader import TeamLeader
from .leader_team import LeaderTeamOrchestrator
from .leader_types import (
    LeaderPlan,
    LeaderRunState,
    LeaderRuntimeConfig,
    LeaderTeamSettings,
    PlanAssignment,
    VerifyDecision,
)
from .policy import OrchestrationPolicy
from .runtime import LeaderRuntime

__all__ = [
    "AgentHandle",
    "BaseOrchestrator",
    "OrchestrationEvent",
    "OrchestrationMode",
    "OrchestrationRequest",
    "OrchestrationSettings",
    "DirectChatOrchestrator",
    "DirectChatSettings",
    "GoalDrivenOrchestrator",
    "GoalDrivenSettings",
    "GoalRunState",
    "normalize_goal_action",
    "TeamLeader",
    "LeaderTeamOrchestrator",
    "LeaderPlan",
    "LeaderRunState",
    "LeaderRuntimeConfig",
    "LeaderTeamSettings",
    "PlanAssignment",
    "VerifyDecision",
    "OrchestrationPolicy",
    "LeaderRuntime",
]
