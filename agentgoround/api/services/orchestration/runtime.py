"""Leader-team runtime primitives: round bookkeeping and budgets."""

from typing import Optional

from .leader_types import LeaderPlan, LeaderRunState, LeaderRuntimeConfig, LeaderStep, PlanAssignment


class LeaderRuntime:
    """Tracks rounds, the plan cursor and the session-wide budgets."""

    def __init__(self, config: LeaderRuntimeConfig):
        self.config = config

    def has_remaining_rounds(self, state: LeaderRunState) -> bool:
        """Whether another main round can still be executed."""
        return state.round < self.config.max_rounds

    def current_round(self, state: LeaderRunState) -> int:
        """1-based round index currently being orchestrated."""
        return state.round + 1

    def planned_assignment(self, state: LeaderRunState, plan: LeaderPlan) -> Optional[PlanAssignment]:
        """Assignment scheduled for the current round, or None once the plan is exhausted."""
        if state.round < len(plan.assignments):
            return plan.assignments[state.round]
        return None

    def record_step(self, state: LeaderRunState, step: LeaderStep) -> None:
        state.steps.append(step)

    def record_invalid_action(self, state: LeaderRunState) -> None:
        state.invalid_action_count += 1

    def can_retry_invalid(self, attempt: int) -> bool:
        """`attempt` counts invalid outputs already seen in this round."""
        return attempt <= self.config.retry_max

    def can_react(self, state: LeaderRunState) -> bool:
        return state.react_count < self.config.react_max

    def record_react(self, state: LeaderRunState) -> None:
        state.react_count += 1

    def advance_round(self, state: LeaderRunState) -> None:
        """Advance the round index (and with it the plan cursor)."""
        state.round += 1
