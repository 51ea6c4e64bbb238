"""Goal-driven orchestration: one agent cycling plan / act / review until final."""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from agentgoround.agents.action_parser import (
    coerce_bool,
    extract_json_object,
    first_string,
    read_discriminator,
)
from agentgoround.agents.one_to_one import run_one_to_one
from agentgoround.api.models.document import DocItem
from agentgoround.providers.types import ChatMessage, make_message
from agentgoround.tools.mcp_bridge import ToolClientFactory, ToolCaller, invoke_tool_action
from agentgoround.tools.mcp_client import McpSseClient
from agentgoround.tools.mcp_registry import call_tool
from agentgoround.utils.log_utils import log_trace, truncate_log_text

from .base import BaseOrchestrator, OrchestrationEvent, OrchestrationRequest
from .goal_types import (
    DocLookupAction,
    ExecuteAction,
    FinalAction,
    GoalAction,
    GoalDrivenSettings,
    GoalRunState,
    McpCallAction,
    PlanAction,
    PlanItem,
    ReviewAction,
    ThinkAction,
)

logger = logging.getLogger(__name__)

PLAN_FIRST_PREFIX = "First, create a sub-goal plan before anything else."
TURN_LIMIT_ANSWER = "Reached turn limit. Here is the best available answer based on prior steps."
NO_DOC_TEXT = "No doc selected."


def normalize_goal_action(obj: Any) -> Optional[GoalAction]:
    """Validate a parsed object as a goal-driven action; None on any mismatch."""
    kind = read_discriminator(obj)
    if kind == "plan":
        items = _plan_items(obj.get("items"))
        return PlanAction(items=items) if items else None
    if kind == "think":
        thought = obj.get("thought")
        return ThinkAction(thought=thought) if isinstance(thought, str) else None
    if kind == "doc_lookup":
        query = obj.get("query")
        return DocLookupAction(query=query if isinstance(query, str) else None)
    if kind == "mcp_call":
        tool = obj.get("tool")
        if not isinstance(tool, str) or not tool.strip():
            return None
        server_id = first_string(obj, ("serverId", "server_id"))
        return McpCallAction(tool=tool.strip(), input=obj.get("input"), server_id=server_id)
    if kind == "execute":
        task, output = obj.get("task"), obj.get("output")
        if isinstance(task, str) and isinstance(output, str):
            return ExecuteAction(task=task, output=output)
        return None
    if kind == "review":
        task = obj.get("task")
        ok = coerce_bool(obj.get("ok"))
        if not isinstance(task, str) or ok is None:
            return None
        notes = obj.get("notes")
        return ReviewAction(task=task, ok=ok, notes=notes if isinstance(notes, str) else None)
    if kind == "final":
        answer = obj.get("answer")
        return FinalAction(answer=answer) if isinstance(answer, str) else None
    return None


def _plan_items(raw: Any) -> List[PlanItem]:
    if not isinstance(raw, list):
        return []
    items: List[PlanItem] = []
    for entry in raw:
        if isinstance(entry, str) and entry.strip():
            items.append(PlanItem(goal=entry.strip()))
        elif isinstance(entry, dict):
            goal = first_string(entry, ("goal", "task"))
            if goal and goal.strip():
                items.append(PlanItem(goal=goal.strip(), agent=first_string(entry, ("agent",))))
    return items


def document_text(document: Optional[DocItem]) -> str:
    return document.as_context_block() if document else NO_DOC_TEXT


def build_action_prompt(state: GoalRunState, settings: GoalDrivenSettings) -> str:
    """Prompt listing the actions available this turn."""
    agent_name = settings.agent.name
    server = settings.active_server
    action_lines = [
        f'- plan (first turn only): {{"type":"plan","items":[{{"goal":"sub-goal 1","agent":"{agent_name}"}}, ...]}}',
        '- think: {"type":"think","thought":"reasoning or review for next step"}',
        '- doc_lookup: {"type":"doc_lookup","query":"what you need from the doc"}'
        if settings.document
        else "- doc_lookup: unavailable (no doc selected)",
        f'- mcp_call: {{"type":"mcp_call","tool":"<tool name>","input":{{...}}}} (active server: {server.name})'
        if server
        else "- mcp_call: unavailable (no active MCP server)",
        '- execute: {"type":"execute","task":"<sub-goal>","output":"<result of doing it>"}',
        '- review: {"type":"review","task":"<sub-goal>","ok":true,"notes":"<what to fix>"}',
        '- final: {"type":"final","answer":"concise final answer or summary"}',
    ]

    tool_section = ""
    if server:
        if settings.active_tools:
            tool_lines = "\n".join(
                f"- {tool.name}" + (f" - {tool.description}" if tool.description else "")
                for tool in settings.active_tools
            )
        else:
            tool_lines = "- No tools returned yet; use tools/list first."
        tool_section = f"Active MCP server: {server.name} (id: {server.id})\nTools:\n{tool_lines}\n\n"

    plan_section = ""
    if state.plan:
        plan_section = "Current plan:\n" + "\n".join(
            f"{index}. {item.goal}" + (f" ({item.agent})" if item.agent else "")
            for index, item in enumerate(state.plan, start=1)
        ) + "\n\n"

    return (
        "You are in GOAL-DRIVEN TALK mode. Follow an analyze -> act -> review loop "
        "until you can provide the best final answer.\n"
        f"GOAL:\n{state.goal}\n\n"
        f"Agents available: {agent_name} (primary executor). "
        "Always note which agent owns each sub-goal in the plan.\n\n"
        f"{plan_section}"
        f"{tool_section}"
        "At each turn, reply with exactly ONE JSON object (no Markdown, no code fences).\n"
        "Allowed actions:\n"
        + "\n".join(action_lines)
        + "\n\n"
        f"Be deliberate. Prefer a quick think step when helpful. Turn #{state.turn}: choose the next action."
    )


class GoalDrivenOrchestrator(BaseOrchestrator):
    """Runs the goal-driven loop for one agent and emits transcript events."""

    mode = "goal_driven"

    def __init__(
        self,
        *,
        llm_call: Callable[..., Awaitable[str]] = run_one_to_one,
        tool_client_factory: ToolClientFactory = McpSseClient,
        tool_caller: ToolCaller = call_tool,
        trace_preview_chars: int = 1600,
    ):
        self.llm_call = llm_call
        self.tool_client_factory = tool_client_factory
        self.tool_caller = tool_caller
        self.trace_preview_chars = trace_preview_chars

    async def stream(self, request: OrchestrationRequest) -> AsyncIterator[OrchestrationEvent]:
        """Mode-agnostic interface used by orchestrator callers."""
        if request.mode and request.mode != self.mode:
            raise ValueError(f"GoalDrivenOrchestrator only supports mode={self.mode}")
        if not isinstance(request.settings, GoalDrivenSettings):
            raise ValueError("GoalDrivenOrchestrator requires GoalDrivenSettings")

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
        settings: GoalDrivenSettings,
        history: List[ChatMessage],
        system: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """Goal-driven protocol; always ends with exactly one `goal_done` event."""
        handle = settings.agent
        state = GoalRunState(goal=goal, session=list(history))

        def emit(kind: str, message: ChatMessage) -> Dict[str, Any]:
            state.session.append(message)
            return {"type": "message", "kind": kind, "message": message.model_dump()}

        while state.turn < settings.max_turns:
            state.turn += 1
            yield {"type": "goal_turn_start", "turn": state.turn, "max_turns": settings.max_turns}

            prompt = build_action_prompt(state, settings)
            if not state.has_plan:
                prompt = f"{PLAN_FIRST_PREFIX}\n{prompt}"
            text = await self.llm_call(
                handle.adapter,
                handle.agent,
                prompt,
                list(state.session),
                system=system,
                retry=settings.backend_retry,
                on_log=lambda line: logger.info("[%s] %s", handle.name, line),
            )
            log_trace(
                trace_id,
                "goal_turn",
                {"turn": state.turn, "raw": truncate_log_text(text, self.trace_preview_chars)},
            )

            action = normalize_goal_action(extract_json_object(text))
            if action is None:
                logger.info("Goal-driven turn %s produced no valid action; ending session", state.turn)
                yield emit("assistant", make_message("assistant", text, handle.name))
                yield {"type": "goal_done", "reason": "unparseable", "turns": state.turn, "answer": text}
                return

            if isinstance(action, FinalAction):
                yield emit("final", make_message("assistant", action.answer, handle.name))
                yield {"type": "goal_done", "reason": "final", "turns": state.turn, "answer": action.answer}
                return

            if isinstance(action, PlanAction):
                state.plan = list(action.items)
                yield {
                    "type": "goal_plan",
                    "items": [{"goal": item.goal, "agent": item.agent} for item in action.items],
                }
                plan_lines = "\n".join(
                    f"{index}. {item.goal} - assigned to {item.agent or handle.name}"
                    for index, item in enumerate(action.items, start=1)
                )
                yield emit("assistant", make_message("assistant", f"Plan established:\n{plan_lines}", handle.name))
            elif isinstance(action, ThinkAction):
                yield emit("assistant", make_message("assistant", action.thought, handle.name))
            elif isinstance(action, DocLookupAction):
                yield emit("tool", make_message("tool", document_text(settings.document), "doc"))
            elif isinstance(action, McpCallAction):
                yield {
                    "type": "tool_call",
                    "tool": action.tool,
                    "input": action.input if action.input is not None else {},
                    "server_id": settings.active_server.id if settings.active_server else None,
                }
                message = await invoke_tool_action(
                    tool=action.tool,
                    tool_input=action.input,
                    active_server=settings.active_server,
                    requested_server_id=action.server_id,
                    client_factory=self.tool_client_factory,
                    caller=self.tool_caller,
                )
                yield emit("tool", message)
            elif isinstance(action, ExecuteAction):
                state.executed.append(action)
                yield {"type": "goal_execute", "task": action.task, "output": action.output}
                yield emit(
                    "assistant",
                    make_message("assistant", f"Executed: {action.task}\n{action.output}", handle.name),
                )
            elif isinstance(action, ReviewAction):
                state.reviews.append(action)
                if not action.ok:
                    logger.info("Review failed for %r: %s", action.task, action.notes or "-")
                yield {"type": "goal_review", "task": action.task, "ok": action.ok, "notes": action.notes}
                verdict = "passed" if action.ok else "failed"
                content = f"Review of {action.task}: {verdict}"
                if action.notes:
                    content += f"\n{action.notes}"
                yield emit("assistant", make_message("assistant", content, handle.name))

        yield emit("assistant", make_message("assistant", TURN_LIMIT_ANSWER, handle.name))
        yield {"type": "goal_done", "reason": "turn_limit", "turns": state.turn, "answer": TURN_LIMIT_ANSWER}
