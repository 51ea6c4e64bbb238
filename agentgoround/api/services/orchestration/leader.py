"""Leader prompts and action normalization for the leader-team protocol."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from agentgoround.agents.action_parser import (
    coerce_bool,
    extract_json_object,
    first_string,
    read_discriminator,
)

from .leader_types import (
    AskMember,
    Finish,
    LeaderAction,
    LeaderActionStep,
    LeaderPlan,
    LeaderRunState,
    MemberReplyStep,
    PlanAssignment,
    ReactRequest,
    VerifyDecision,
)

_MEMBER_KEYS = ("memberId", "member_id", "member", "assignee")
_MESSAGE_KEYS = ("message", "task", "prompt", "instruction")
_PLAN_LIST_KEYS = ("assignments", "plan", "tasks", "steps")

MEMBER_SYSTEM_PROMPT = (
    "You are a specialist team member working for a team leader.\n"
    "Answer the assigned task directly. Be concise and actionable."
)


class TeamLeader:
    """Builds leader prompts and normalizes leader output into typed decisions."""

    def __init__(
        self,
        *,
        leader_name: str,
        members: Sequence[Tuple[str, str]],
    ):
        self.leader_name = leader_name
        self.member_order: List[str] = [member_id for member_id, _ in members]
        self.member_names: Dict[str, str] = {member_id: name for member_id, name in members}

    def resolve_member(self, raw: Optional[str]) -> Optional[str]:
        """Map an id (exact) or a display name (case-insensitive) to a member id."""
        key = (raw or "").strip()
        if not key:
            return None
        if key in self.member_names:
            return key
        lowered = key.lower()
        for member_id in self.member_order:
            if self.member_names[member_id].strip().lower() == lowered:
                return member_id
        return None

    def member_name(self, member_id: str) -> str:
        return self.member_names.get(member_id, member_id)

    def build_system_prompt(self, base_system: Optional[str] = None) -> str:
        prompt = (
            f"You are {self.leader_name}, the leader of a team of assistants.\n"
            "You coordinate members one at a time to achieve the user's goal.\n"
            "Always answer with exactly one JSON object and nothing else."
        )
        if base_system and base_system.strip():
            return f"{base_system.strip()}\n\n{prompt}"
        return prompt

    def build_planning_prompt(self, goal: str) -> str:
        return (
            f"Goal:\n{goal}\n\n"
            "Team members:\n"
            f"{self._roster_block()}\n\n"
            "Plan which member should work on what, in order.\n"
            "Return JSON:\n"
            '{"type":"plan","assignments":[{"memberId":"<member id>","message":"<task for the member>"}],'
            '"notes":"<optional notes>"}\n'
            "Use only the member ids listed above."
        )

    def build_round_prompt(
        self,
        state: LeaderRunState,
        plan: LeaderPlan,
        *,
        round_number: int,
        max_rounds: int,
        planned: Optional[PlanAssignment],
    ) -> str:
        if planned is not None:
            planned_line = f"{self.member_name(planned.member_id)} [{planned.member_id}]"
            if planned.message:
                planned_line += f" - {planned.message}"
        else:
            planned_line = "(plan exhausted) choose a member yourself or finish"
        return (
            f"Goal:\n{state.goal}\n\n"
            "Team members:\n"
            f"{self._roster_block()}\n\n"
            "Plan:\n"
            f"{self._plan_block(plan)}\n\n"
            f"Round: {round_number}/{max_rounds}\n"
            f"Planned next member: {planned_line}\n\n"
            "Transcript so far:\n"
            f"{self._transcript_block(state)}\n\n"
            "Decide the next action. Return JSON only, one of:\n"
            '{"type":"ask_member","memberId":"<member id>","message":"<what to ask>"}\n'
            '{"type":"finish","answer":"<final answer for the user>"}'
        )

    def build_verify_prompt(
        self,
        state: LeaderRunState,
        *,
        member_id: str,
        task: str,
        reply: str,
    ) -> str:
        return (
            f"Goal:\n{state.goal}\n\n"
            f"You asked {self.member_name(member_id)} [{member_id}]:\n{task}\n\n"
            f"Reply:\n{reply}\n\n"
            "Verify whether the reply completes the task.\n"
            "Return JSON only:\n"
            '{"ok":true,"reason":"<short reason>"}\n'
            "or, to ask a member again:\n"
            '{"ok":false,"reason":"<what is missing>","react":{"memberId":"<member id>","message":"<follow-up>"}}'
        )

    def build_final_verification_prompt(self, state: LeaderRunState, answer: str) -> str:
        return (
            f"Goal:\n{state.goal}\n\n"
            "Transcript:\n"
            f"{self._transcript_block(state)}\n\n"
            f"Proposed final answer:\n{answer}\n\n"
            "Check the final answer against the goal and the transcript.\n"
            'Return JSON only: {"ok":true|false,"reason":"<short reason>"}'
        )

    def build_forced_final_prompt(self, state: LeaderRunState, plan: LeaderPlan) -> str:
        return (
            f"Goal:\n{state.goal}\n\n"
            "Plan:\n"
            f"{self._plan_block(plan)}\n\n"
            "Transcript:\n"
            f"{self._transcript_block(state)}\n\n"
            "We reached the maximum number of rounds. Answer now with the best final answer.\n"
            'Return JSON only: {"type":"finish","answer":"<final answer for the user>"}'
        )

    def build_member_input(self, goal: str, message: str) -> str:
        task = message.strip() or "Contribute what you can toward the goal."
        return f"Team goal:\n{goal}\n\nYour task:\n{task}"

    def parse_plan(self, raw_output: str) -> LeaderPlan:
        """Parse the planning reply; never returns an empty plan."""
        payload = extract_json_object(raw_output)
        assignments: List[PlanAssignment] = []
        notes: Optional[str] = None
        if payload is not None:
            notes_value = payload.get("notes")
            notes = notes_value.strip() if isinstance(notes_value, str) and notes_value.strip() else None
            seen = set()
            for entry in self._plan_entries(payload):
                member_id = self.resolve_member(first_string(entry, _MEMBER_KEYS))
                if member_id is None or member_id in seen:
                    continue
                seen.add(member_id)
                message = first_string(entry, _MESSAGE_KEYS) or ""
                assignments.append(PlanAssignment(member_id=member_id, message=message.strip()))

        if not assignments:
            return LeaderPlan(
                assignments=[PlanAssignment(member_id=member_id) for member_id in self.member_order],
                notes=notes,
                fallback=True,
            )
        return LeaderPlan(assignments=assignments, notes=notes)

    @staticmethod
    def normalize_action(obj: Any) -> Optional[LeaderAction]:
        """Validate a parsed object as a leader action; None on any mismatch."""
        kind = read_discriminator(obj)
        if kind == "ask_member":
            member_id = first_string(obj, ("memberId", "member_id"))
            message = obj.get("message")
            if member_id is None or not isinstance(message, str):
                return None
            return AskMember(member_id=member_id.strip(), message=message)
        if kind == "finish":
            answer = obj.get("answer")
            if not isinstance(answer, str):
                return None
            return Finish(answer=answer)
        return None

    def parse_action(self, raw_output: str) -> Optional[LeaderAction]:
        return self.normalize_action(extract_json_object(raw_output))

    @staticmethod
    def parse_verify(raw_output: str) -> Optional[VerifyDecision]:
        """Parse a verification verdict; None when the output is unusable."""
        payload = extract_json_object(raw_output)
        if payload is None:
            return None
        ok = coerce_bool(payload.get("ok"))
        reason_value = payload.get("reason")
        reason = reason_value.strip() if isinstance(reason_value, str) and reason_value.strip() else None

        react: Optional[ReactRequest] = None
        react_payload = payload.get("react")
        if not isinstance(react_payload, dict) and read_discriminator(payload) == "react":
            react_payload = payload
        if isinstance(react_payload, dict):
            member_id = first_string(react_payload, ("memberId", "member_id"))
            message = react_payload.get("message")
            if member_id is not None and isinstance(message, str):
                react = ReactRequest(member_id=member_id.strip(), message=message)

        if ok is None:
            if react is None:
                return None
            ok = False
        return VerifyDecision(ok=ok, reason=reason, react=react)

    @staticmethod
    def _plan_entries(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        for key in _PLAN_LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return [entry for entry in value if isinstance(entry, dict)]
        return []

    def _roster_block(self) -> str:
        lines = [
            f"- {self.member_names[member_id]} [{member_id}]"
            for member_id in self.member_order
        ]
        return "\n".join(lines) if lines else "- none"

    def _plan_block(self, plan: LeaderPlan) -> str:
        lines = []
        for index, assignment in enumerate(plan.assignments, start=1):
            task = assignment.message or "(no specific task)"
            lines.append(f"{index}. {self.member_name(assignment.member_id)} [{assignment.member_id}]: {task}")
        if plan.notes:
            lines.append(f"Notes: {plan.notes}")
        return "\n".join(lines) if lines else "- empty"

    def _transcript_block(self, state: LeaderRunState) -> str:
        lines: List[str] = []
        for step in state.steps:
            if isinstance(step, LeaderActionStep):
                action = step.action
                if isinstance(action, AskMember):
                    lines.append(
                        f"[round {step.round}] {self.leader_name} -> ask_member "
                        f"{self.member_name(action.member_id)} [{action.member_id}]: {action.message}"
                    )
                else:
                    lines.append(f"[round {step.round}] {self.leader_name} -> finish: {action.answer}")
            elif isinstance(step, MemberReplyStep):
                label = "react reply" if step.react else "reply"
                lines.append(
                    f"[round {step.round}] {step.member_name} [{step.member_id}] {label} "
                    f"(task: {step.message or '-'}):\n{step.reply}"
                )
        return "\n".join(lines) if lines else "- nothing yet"
