"""Shared pytest fixtures for all tests."""

import shutil
import uuid
from pathlib import Path
from typing import Callable, List, Union
from unittest.mock import Mock

import pytest

from agentgoround.api.services.orchestration import AgentHandle
from agentgoround.providers.base import BaseAgentAdapter, ChatRequest
from agentgoround.providers.types import AgentConfig, ChatEvent
from agentgoround.utils import llm_logger


def _create_workspace_temp_dir(kind: str) -> Path:
    """Create a temporary directory under repository-local .pytest_work."""
    repo_root = Path(__file__).resolve().parents[1]
    root_dir = repo_root / ".pytest_work" / kind
    root_dir.mkdir(parents=True, exist_ok=True)
    temp_dir = root_dir / f"{kind}_{uuid.uuid4().hex[:8]}"
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


@pytest.fixture
def tmp_path():
    """Workspace-local replacement for pytest's tmp_path fixture."""
    temp_dir = _create_workspace_temp_dir("tmp_path")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def quiet_llm_logger(monkeypatch):
    """Keep unit tests from writing llm_interactions log files."""
    fake = Mock()
    monkeypatch.setattr(llm_logger, "_llm_logger", fake)
    return fake


Responder = Union[Callable[[ChatRequest], str], List[str]]


class ScriptedAdapter(BaseAgentAdapter):
    """Adapter whose replies come from a callable or a list of canned strings."""

    def __init__(self, responder: Responder):
        self.responder = responder
        self.requests: List[ChatRequest] = []

    def _next_text(self, request: ChatRequest) -> str:
        if callable(self.responder):
            return self.responder(request)
        if not self.responder:
            raise AssertionError(f"unexpected backend call with input: {request.input[:80]}")
        return self.responder.pop(0)

    async def chat(self, request: ChatRequest):
        self.requests.append(request)
        text = self._next_text(request)
        midpoint = len(text) // 2
        if text:
            yield ChatEvent(type="delta", text=text[:midpoint])
            yield ChatEvent(type="delta", text=text[midpoint:])
        yield ChatEvent(type="done", text=text)


@pytest.fixture
def make_agent():
    """Factory for AgentConfig objects."""

    def _make(agent_id: str, name: str = None, **kwargs) -> AgentConfig:
        return AgentConfig(id=agent_id, name=name or agent_id.upper(), **kwargs)

    return _make


@pytest.fixture
def make_handle(make_agent):
    """Factory for AgentHandle objects backed by a ScriptedAdapter."""

    def _make(agent_id: str, responder: Responder, name: str = None, **kwargs) -> AgentHandle:
        return AgentHandle(agent=make_agent(agent_id, name, **kwargs), adapter=ScriptedAdapter(responder))

    return _make


@pytest.fixture
def sample_agents_config():
    """Sample agents file content."""
    return {
        "agents": [
            {
                "id": "writer",
                "name": "Writer",
                "type": "openai_compat",
                "endpoint": "http://localhost:1234/v1",
                "model": "local-model",
            },
            {
                "id": "reviewer",
                "name": "Reviewer",
                "type": "custom",
                "custom": {
                    "method": "POST",
                    "url": "http://localhost:9000/chat",
                    "body_template": '{"prompt": "{{input}}"}',
                    "response_json_path": "$.reply",
                },
            },
        ]
    }


@pytest.fixture
def make_adapter():
    """Factory for ScriptedAdapter objects."""
    return ScriptedAdapter
