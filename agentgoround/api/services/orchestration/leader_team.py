"""Leader-team orchestration loop: plan, delegate, verify, react, finish."""

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from agentgoround.agents.one_to_one import run_one_to_one
from agentgoround.providers.types import ChatMessage, RetryConfig
from agentgoround.utils.log_utils import log_trace, truncate_log_text

from .base import AgentHandle, BaseOrchestrator, OrchestrationEvent, OrchestrationRequest
from .leader import MEMBER_SYSTEM_PROMPT, TeamLeader
from .leader_types import (
    AskMember,
    Finish,
    LeaderActionStep,
    LeaderPlan,
    LeaderRunState,
    LeaderRuntimeConfig,
    LeaderTeamSettings,
    MemberReplyStep,
)
from .runtime import LeaderRuntime

logger = logging.getLogger(__name__)

NO_MEMBERS_ANSWER = "No member agents selected. Choose at least one member besides the leader."


class LeaderTeamOrchestrator(BaseOrchestrator):
    """Runs one leader-team session strictly sequentially and emits leader events."""

    mode = "leader_team"

    def __init__(
        self,
        *,
        llm_call: Callable[..., Awaitable[str]] = run_one_to_one,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        trace_preview_chars: int = 1600,
    ):
        self.llm_call = llm_call
        self.sleep = sleep
        self.trace_preview_chars = trace_preview_chars

    async def stream(self, request: OrchestrationRequest) -> AsyncIterator[OrchestrationEvent]:
        """Mode-agnostic interface used by orchestrator callers."""
        if request.mode and request.mode != self.mode:
            raise ValueError(f"LeaderTeamOrchestrator only supports mode={self.mode}")
        if not isinstance(request.settings, LeaderTeamSettings):
            raise ValueError("LeaderTeamOrchestrator requires LeaderTeamSettings")

        async for event in self.process(
            goal=request.user_message,
            settings=request.settings,
            history=request.history,
            system=request.system,
            trace_id=request.trace_id,
        ):
            yield self.normalize_event(event)

    async def process(
        self,
        *,
        goal: str,
        settings: LeaderTeamSettings,
        history: List[ChatMessage],
        system: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """Leader-team protocol; always ends with exactly one `leader_done` event."""
        leader = settings.leader
        members = [member for member in settings.members if member.id != leader.id]
        if not members:
            yield {"type": "leader_done", "reason": "no_members", "rounds": 0, "answer": NO_MEMBERS_ANSWER}
            return

        config = LeaderRuntimeConfig(
            max_rounds=settings.max_rounds,
            react_max=settings.react_max,
            retry_max=settings.retry_max,
            retry_delay_sec=settings.retry_delay_sec,
        )
        runtime = LeaderRuntime(config)
        team = TeamLeader(leader_name=leader.name, members=[(m.id, m.name) for m in members])
        member_by_id = {member.id: member for member in members}
        state = LeaderRunState(goal=goal)
        leader_system = team.build_system_prompt(system)
        retry = settings.backend_retry

        async def call_leader(prompt: str) -> str:
            return await self._call(leader, prompt, history=history, system=leader_system, retry=retry)

        plan_raw = await call_leader(team.build_planning_prompt(goal))
        plan = team.parse_plan(plan_raw)
        self._trace(trace_id, "leader_plan", {"raw": plan_raw, "fallback": plan.fallback})
        yield {
            "type": "leader_plan",
            "assignments": [
                {
                    "member_id": assignment.member_id,
                    "member_name": team.member_name(assignment.member_id),
                    "message": assignment.message,
                }
                for assignment in plan.assignments
            ],
            "fallback": plan.fallback,
            "notes": plan.notes,
        }

        while runtime.has_remaining_rounds(state):
            round_number = runtime.current_round(state)
            planned = runtime.planned_assignment(state, plan)
            yield {
                "type": "leader_round_start",
                "round": round_number,
                "max_rounds": config.max_rounds,
                "planned_member_id": planned.member_id if planned else None,
            }

            prompt = team.build_round_prompt(
                state,
                plan,
                round_number=round_number,
                max_rounds=config.max_rounds,
                planned=planned,
            )
            attempt = 0
            while True:
                raw = await call_leader(prompt)
                yield {"type": "leader_decision_raw", "round": round_number, "text": raw}
                action = team.parse_action(raw)
                if action is not None:
                    break
                attempt += 1
                runtime.record_invalid_action(state)
                yield {
                    "type": "leader_invalid_action",
                    "round": round_number,
                    "text": raw,
                    "attempt": attempt,
                    "retry_max": config.retry_max,
                }
                if not runtime.can_retry_invalid(attempt):
                    logger.warning(
                        "Leader produced no valid action in round %s after %s attempt(s); ending session",
                        round_number,
                        attempt,
                    )
                    yield {"type": "leader_done", "reason": "invalid_action", "rounds": round_number, "answer": raw}
                    return
                if config.retry_delay_sec > 0:
                    await self.sleep(config.retry_delay_sec)

            runtime.record_step(state, LeaderActionStep(round=round_number, action=action))

            if isinstance(action, Finish):
                verify_raw = await call_leader(team.build_final_verification_prompt(state, action.answer))
                verdict = team.parse_verify(verify_raw)
                if verdict is None or not verdict.ok:
                    logger.info(
                        "Final verification did not pass (%s); accepting leader finish",
                        verdict.reason if verdict else "unparseable",
                    )
                yield {
                    "type": "leader_final_verification",
                    "ok": verdict.ok if verdict else None,
                    "reason": verdict.reason if verdict else None,
                }
                yield {"type": "leader_finish", "answer": action.answer}
                yield {"type": "leader_done", "reason": "finish", "rounds": round_number, "answer": action.answer}
                return

            requested_id = team.resolve_member(action.member_id)
            if requested_id is None:
                logger.warning("Leader asked unknown member %r; ending session", action.member_id)
                yield {"type": "leader_done", "reason": "unknown_member", "rounds": round_number, "answer": raw}
                return
            member_id = planned.member_id if planned else requested_id
            message = planned.message if planned and planned.message else action.message
            member = member_by_id[member_id]

            yield {
                "type": "leader_ask_member",
                "round": round_number,
                "member_id": member_id,
                "member_name": member.name,
                "message": message,
            }
            reply = await self._call_member(member, goal, message, team, retry)
            runtime.record_step(
                state,
                MemberReplyStep(
                    round=round_number,
                    member_id=member_id,
                    member_name=member.name,
                    message=message,
                    reply=reply,
                ),
            )
            yield {
                "type": "member_reply",
                "round": round_number,
                "member_id": member_id,
                "member_name": member.name,
                "reply": reply,
            }

            async for event in self._verify_loop(
                state=state,
                runtime=runtime,
                team=team,
                member_by_id=member_by_id,
                call_leader=call_leader,
                round_number=round_number,
                member_id=member_id,
                task=message,
                reply=reply,
                retry=retry,
                trace_id=trace_id,
            ):
                yield event

            runtime.advance_round(state)

        answer = await self._force_finalize(state, plan, team, call_leader, trace_id)
        yield {"type": "leader_finish", "answer": answer}
        yield {"type": "leader_done", "reason": "max_rounds", "rounds": state.round, "answer": answer}

    async def _verify_loop(
        self,
        *,
        state: LeaderRunState,
        runtime: LeaderRuntime,
        team: TeamLeader,
        member_by_id: Dict[str, AgentHandle],
        call_leader: Callable[[str], Awaitable[str]],
        round_number: int,
        member_id: str,
        task: str,
        reply: str,
        retry: Optional[RetryConfig],
        trace_id: Optional[str],
    ) -> AsyncIterator[Dict[str, Any]]:
        """Verify the latest reply and re-delegate while the react budget allows."""
        while True:
            verify_raw = await call_leader(
                team.build_verify_prompt(state, member_id=member_id, task=task, reply=reply)
            )
            verdict = team.parse_verify(verify_raw)
            self._trace(trace_id, "leader_verify", {"round": round_number, "raw": verify_raw})
            yield {
                "type": "leader_verify",
                "round": round_number,
                "ok": verdict.ok if verdict else None,
                "reason": verdict.reason if verdict else None,
                "react_member_id": verdict.react.member_id if verdict and verdict.react else None,
            }
            if verdict is None:
                logger.info("Round %s verification unparseable; moving on", round_number)
                return
            if verdict.ok or verdict.react is None:
                return
            if not runtime.can_react(state):
                logger.info("React budget exhausted (%s); moving on", runtime.config.react_max)
                return
            react_id = team.resolve_member(verdict.react.member_id)
            if react_id is None:
                logger.info("React target %r is not a member; moving on", verdict.react.member_id)
                return

            runtime.record_react(state)
            member = member_by_id[react_id]
            yield {
                "type": "leader_react",
                "round": round_number,
                "member_id": react_id,
                "member_name": member.name,
                "message": verdict.react.message,
                "react_count": state.react_count,
            }
            reply = await self._call_member(member, state.goal, verdict.react.message, team, retry)
            member_id = react_id
            task = verdict.react.message
            runtime.record_step(
                state,
                MemberReplyStep(
                    round=round_number,
                    member_id=react_id,
                    member_name=member.name,
                    message=task,
                    reply=reply,
                    react=True,
                ),
            )
            yield {
                "type": "member_reply",
                "round": round_number,
                "member_id": react_id,
                "member_name": member.name,
                "reply": reply,
                "react": True,
            }

    async def _force_finalize(
        self,
        state: LeaderRunState,
        plan: LeaderPlan,
        team: TeamLeader,
        call_leader: Callable[[str], Awaitable[str]],
        trace_id: Optional[str],
    ) -> str:
        raw = await call_leader(team.build_forced_final_prompt(state, plan))
        self._trace(trace_id, "leader_forced_final", {"raw": raw})
        action = team.parse_action(raw)
        if isinstance(action, Finish):
            return action.answer
        return raw

    async def _call_member(
        self,
        member: AgentHandle,
        goal: str,
        message: str,
        team: TeamLeader,
        retry: Optional[RetryConfig],
    ) -> str:
        return await self._call(
            member,
            team.build_member_input(goal, message),
            history=[],
            system=MEMBER_SYSTEM_PROMPT,
            retry=retry,
        )

    async def _call(
        self,
        handle: AgentHandle,
        input_text: str,
        *,
        history: List[ChatMessage],
        system: Optional[str],
        retry: Optional[RetryConfig],
    ) -> str:
        return await self.llm_call(
            handle.adapter,
            handle.agent,
            input_text,
            history,
            system=system,
            retry=retry,
            on_log=lambda line: logger.info("[%s] %s", handle.name, line),
        )

    def _trace(self, trace_id: Optional[str], stage: str, payload: Dict[str, Any]) -> None:
        compact = {
            key: truncate_log_text(value, self.trace_preview_chars) if isinstance(value, str) else value
            for key, value in payload.items()
        }
        log_trace(trace_id, stage, compact)
