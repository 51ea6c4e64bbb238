"""Unit tests for chat dispatch across the three protocols."""

import json

import pytest

from agentgoround.api.models.chat import ChatStreamRequest
from agentgoround.api.models.document import DocUpsert
from agentgoround.api.models.mcp_server import McpServerConfig, McpTool
from agentgoround.api.models.ui_state import UiState
from agentgoround.api.services.agent_config_service import AgentConfigService
from agentgoround.api.services.chat_dispatch_service import (
    NO_AGENT_ANSWER,
    ChatDispatchDeps,
    ChatDispatchService,
)
from agentgoround.api.services.document_service import DocumentService
from agentgoround.api.services.orchestration import (
    DirectChatOrchestrator,
    GoalDrivenOrchestrator,
    LeaderTeamOrchestrator,
)
from agentgoround.api.services.orchestration.leader_team import NO_MEMBERS_ANSWER
from agentgoround.api.services.settings_service import SettingsService
from agentgoround.providers.types import AgentCapabilities
from agentgoround.tools.mcp_registry import McpToolError, list_tools


async def _collect_events(async_iter):
    events = []
    async for event in async_iter:
        events.append(event)
    return events


class DispatchHarness:
    """Real YAML-backed services plus scripted adapters keyed by agent id."""

    def __init__(self, root, make_adapter):
        self.make_adapter = make_adapter
        self.agent_service = AgentConfigService(root / "agents.yaml")
        self.settings_service = SettingsService(root / "settings.yaml")
        self.document_service = DocumentService(root / "documents.yaml")
        self.adapters = {}
        self.fetched_servers = []
        self.tools = [McpTool(name="time")]
        self.tool_error = None

    def script(self, agent_id, responder):
        self.adapters[agent_id] = self.make_adapter(responder)
        return self.adapters[agent_id]

    async def _fetch_tools(self, server):
        self.fetched_servers.append(server.id)
        if self.tool_error:
            raise self.tool_error
        return self.tools

    def service(self, **overrides):
        deps = dict(
            agent_config_service=self.agent_service,
            settings_service=self.settings_service,
            document_service=self.document_service,
            get_adapter=lambda agent: self.adapters[agent.id],
            fetch_tools=self._fetch_tools,
            create_direct_orchestrator=DirectChatOrchestrator,
            create_leader_team_orchestrator=lambda: LeaderTeamOrchestrator(sleep=_no_sleep),
            create_goal_driven_orchestrator=GoalDrivenOrchestrator,
        )
        deps.update(overrides)
        return ChatDispatchService(ChatDispatchDeps(**deps))


async def _no_sleep(_seconds):
    return None


@pytest.fixture
def harness(tmp_path, make_adapter):
    return DispatchHarness(tmp_path, make_adapter)


@pytest.mark.asyncio
async def test_no_agents_yields_notice(harness):
    events = await _collect_events(harness.service().stream(ChatStreamRequest(message="hi")))

    assert events[0]["type"] == "message"
    assert events[0]["message"]["content"] == NO_AGENT_ANSWER
    assert events[-1] == {"type": "chat_done", "mode": "one_to_one", "answer": NO_AGENT_ANSWER}


@pytest.mark.asyncio
async def test_one_to_one_uses_active_agent(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("a1"))
    await harness.agent_service.upsert_agent(make_agent("a2"))
    harness.script("a1", ["from a1"])
    harness.script("a2", ["from a2"])
    await harness.settings_service.update_ui_state(UiState(active_agent_id="a1"))

    events = await _collect_events(harness.service().stream(ChatStreamRequest(message="hi")))

    assert events[-1] == {"type": "chat_done", "mode": "one_to_one", "answer": "from a1"}
    assert harness.adapters["a2"].requests == []


@pytest.mark.asyncio
async def test_unknown_active_agent_falls_back_to_first(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("a1"))
    harness.script("a1", ["ok"])

    events = await _collect_events(
        harness.service().stream(ChatStreamRequest(message="hi", active_agent_id="gone"))
    )

    assert events[-1]["answer"] == "ok"


@pytest.mark.asyncio
async def test_leader_team_without_members_yields_notice(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("lead"))
    harness.script("lead", [])

    events = await _collect_events(
        harness.service().stream(
            ChatStreamRequest(message="goal", mode="leader_team", active_agent_id="lead", member_agent_ids=["lead"])
        )
    )

    assert events[-1] == {"type": "chat_done", "mode": "leader_team", "answer": NO_MEMBERS_ANSWER}
    assert harness.adapters["lead"].requests == []


@pytest.mark.asyncio
async def test_leader_team_runs_with_ui_limits(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("lead"))
    await harness.agent_service.upsert_agent(make_agent("m1"))
    await harness.settings_service.update_ui_state(
        UiState(mode="leader_team", active_agent_id="lead", member_agent_ids=["m1", "ghost"], max_rounds=1)
    )

    def leader(request):
        if "We reached the maximum number of rounds" in request.input:
            return json.dumps({"type": "finish", "answer": "wrapped"})
        if "Decide the next action" in request.input:
            return json.dumps({"type": "ask_member", "memberId": "m1", "message": "work"})
        return '{"ok": true}'

    harness.script("lead", leader)
    harness.script("m1", ["done"])

    events = await _collect_events(harness.service().stream(ChatStreamRequest(message="goal")))

    leader_done = next(e for e in events if e["type"] == "leader_done")
    assert leader_done["reason"] == "max_rounds"
    assert events[-1] == {"type": "chat_done", "mode": "leader_team", "answer": "wrapped"}


@pytest.mark.asyncio
async def test_document_respects_agent_allow_list(harness, make_agent):
    doc = await harness.document_service.upsert_document(DocUpsert(title="Notes", content="secret"))
    await harness.agent_service.upsert_agent(make_agent("a1", allowed_doc_ids=["other"]))
    adapter = harness.script("a1", ["ok", "ok"])

    await _collect_events(harness.service().stream(ChatStreamRequest(message="hi", doc_id=doc.id)))
    assert adapter.requests[0].system is None

    await harness.agent_service.upsert_agent(make_agent("a1", allowed_doc_ids=[doc.id]))
    await _collect_events(harness.service().stream(ChatStreamRequest(message="hi", doc_id=doc.id)))
    assert "[DOC:Notes]\nsecret" in adapter.requests[1].system


@pytest.mark.asyncio
async def test_mcp_server_requires_agent_permission(harness, make_agent):
    server = McpServerConfig(id="srv", name="Clock", sse_url="http://localhost:3333/mcp/sse")
    await harness.settings_service.set_mcp_servers([server])
    await harness.settings_service.update_ui_state(UiState(active_mcp_server_id="srv"))
    await harness.agent_service.upsert_agent(make_agent("a1"))
    adapter = harness.script("a1", ["plain", "plain"])

    await _collect_events(harness.service().stream(ChatStreamRequest(message="hi")))
    assert harness.fetched_servers == []
    assert adapter.requests[0].system is None

    await harness.agent_service.upsert_agent(make_agent("a1", capabilities=AgentCapabilities(mcp=True)))
    await _collect_events(harness.service().stream(ChatStreamRequest(message="hi")))
    assert harness.fetched_servers == ["srv"]
    assert "- time" in adapter.requests[1].system


@pytest.mark.asyncio
async def test_tool_listing_failure_keeps_server_without_tools(harness, make_agent):
    server = McpServerConfig(id="srv", name="Clock", sse_url="http://localhost:3333/mcp/sse")
    await harness.settings_service.set_mcp_servers([server])
    await harness.agent_service.upsert_agent(make_agent("a1", allowed_mcp_server_ids=["srv"]))
    adapter = harness.script("a1", ["plain"])
    harness.tool_error = McpToolError("HTTP 503")

    events = await _collect_events(
        harness.service().stream(ChatStreamRequest(message="hi", mcp_server_id="srv"))
    )

    assert events[-1]["answer"] == "plain"
    assert "MCP server Clock" in adapter.requests[0].system
    assert "Tools:" not in adapter.requests[0].system


@pytest.mark.asyncio
async def test_goal_driven_dispatch(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("a1"))
    harness.script("a1", [json.dumps({"type": "final", "answer": "goal met"})])

    events = await _collect_events(
        harness.service().stream(ChatStreamRequest(message="goal", mode="goal_driven"))
    )

    assert events[-1] == {"type": "chat_done", "mode": "goal_driven", "answer": "goal met"}


@pytest.mark.asyncio
async def test_unexpected_failure_becomes_error_events(harness, make_agent):
    await harness.agent_service.upsert_agent(make_agent("a1"))

    def broken_adapter(agent):
        raise RuntimeError("adapter exploded")

    events = await _collect_events(
        harness.service(get_adapter=broken_adapter).stream(ChatStreamRequest(message="hi"))
    )

    assert events == [
        {"type": "error", "error": "adapter exploded"},
        {"type": "chat_done", "mode": "one_to_one", "answer": "[ERROR]\nadapter exploded"},
    ]


class _StaticRpcClient:
    def __init__(self, response):
        self.response = response

    async def request(self, method, params=None):
        return self.response


@pytest.mark.asyncio
async def test_malformed_tool_descriptors_do_not_fail_the_turn(harness, make_agent):
    server = McpServerConfig(id="srv", name="Clock", sse_url="http://localhost:3333/mcp/sse")
    await harness.settings_service.set_mcp_servers([server])
    await harness.agent_service.upsert_agent(make_agent("a1", capabilities=AgentCapabilities(mcp=True)))
    adapter = harness.script("a1", ["plain"])

    async def fetch_from_server(server):
        return await list_tools(_StaticRpcClient({"id": "1", "result": {"tools": [{"name": "time", "description": 5}]}}))

    events = await _collect_events(
        harness.service(fetch_tools=fetch_from_server).stream(ChatStreamRequest(message="hi", mcp_server_id="srv"))
    )

    assert events[-1] == {"type": "chat_done", "mode": "one_to_one", "answer": "plain"}
    assert "MCP server Clock" in adapter.requests[0].system
    assert "- time" not in adapter.requests[0].system


@pytest.mark.asyncio
async def test_leader_team_passes_document_to_leader_only(harness, make_agent):
    doc = await harness.document_service.upsert_document(DocUpsert(title="Brief", content="secret-doc"))
    await harness.agent_service.upsert_agent(make_agent("lead"))
    await harness.agent_service.upsert_agent(make_agent("m1"))
    leader = harness.script("lead", lambda request: json.dumps({"type": "finish", "answer": "ok"}))
    member = harness.script("m1", [])

    events = await _collect_events(
        harness.service().stream(
            ChatStreamRequest(
                message="goal",
                mode="leader_team",
                active_agent_id="lead",
                member_agent_ids=["m1"],
                doc_id=doc.id,
                system="Be brief.",
            )
        )
    )

    assert events[-1]["answer"] == "ok"
    assert leader.requests
    for request in leader.requests:
        assert request.system.startswith("Be brief.\n\nYou may use this document as context:\n\n[DOC:Brief]\nsecret-doc")
        assert "You are LEAD, the leader" in request.system
    assert member.requests == []
