"""Tests for the OpenAI-compatible adapter."""

from types import SimpleNamespace

import httpx
import pytest
import respx
from httpx import Response
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from openai import APIConnectionError, RateLimitError

from agentgoround.providers.adapters.openai_compat import OpenAICompatAdapter, build_langchain_messages
from agentgoround.providers.base import ChatRequest
from agentgoround.providers.types import AgentConfig, RetryConfig, make_message


def _agent(**kwargs):
    return AgentConfig(id="oa", name="OA", endpoint="http://lm.test/v1/", model="local", **kwargs)


def _rate_limit():
    response = Response(429, request=httpx.Request("POST", "http://lm.test/v1/chat/completions"))
    return RateLimitError("rate limited", response=response, body=None)


class FakeLLM:
    """Scripted `astream`: each attempt yields chunks, or raises after them."""

    def __init__(self, attempts):
        self.attempts = list(attempts)
        self.calls = 0

    async def astream(self, messages):
        self.calls += 1
        chunks, error = self.attempts.pop(0)
        for text in chunks:
            yield SimpleNamespace(content=text)
        if error is not None:
            raise error


async def _collect(adapter, request):
    return [event async for event in adapter.chat(request)]


def test_create_llm_disables_library_retries(monkeypatch):
    captured = {}

    class FakeChatOpenAI:
        def __init__(self, **kwargs):
            captured.update(kwargs)

    monkeypatch.setattr("agentgoround.providers.adapters.openai_compat.ChatOpenAI", FakeChatOpenAI)

    OpenAICompatAdapter().create_llm(_agent(headers={"X-Test": "1"}))

    assert captured["base_url"] == "http://lm.test/v1"
    assert captured["model"] == "local"
    assert captured["api_key"] == "EMPTY"
    assert captured["max_retries"] == 0
    assert captured["default_headers"] == {"X-Test": "1"}


def test_build_messages_orders_system_history_input():
    request = ChatRequest(
        agent=_agent(),
        input="now",
        history=[
            make_message("user", "q"),
            make_message("assistant", "a"),
            make_message("tool", "result", "mcp"),
        ],
        system="sys",
    )

    messages = build_langchain_messages(request)

    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, AIMessage, HumanMessage]
    assert messages[3].content == "[tool:mcp]\nresult"
    assert messages[-1].content == "now"


@pytest.mark.asyncio
async def test_chat_streams_deltas_then_done(monkeypatch):
    llm = FakeLLM([(["Hel", "", "lo"], None)])
    adapter = OpenAICompatAdapter()
    monkeypatch.setattr(adapter, "create_llm", lambda agent: llm)

    events = await _collect(adapter, ChatRequest(agent=_agent(), input="hi"))

    assert [(e.type, e.text) for e in events] == [("delta", "Hel"), ("delta", "lo"), ("done", "Hello")]


@pytest.mark.asyncio
async def test_chat_retries_rate_limits_and_logs_attempts(monkeypatch):
    llm = FakeLLM([([], _rate_limit()), ([], _rate_limit()), (["ok"], None)])
    adapter = OpenAICompatAdapter()
    monkeypatch.setattr(adapter, "create_llm", lambda agent: llm)
    logs = []

    events = await _collect(
        adapter,
        ChatRequest(agent=_agent(), input="hi", retry=RetryConfig(delay_sec=0, max=2), on_log=logs.append),
    )

    assert llm.calls == 3
    assert events[-1].text == "ok"
    assert logs == [
        "[retry] HTTP 429, attempt 1/2, waiting 0s",
        "[retry] HTTP 429, attempt 2/2, waiting 0s",
    ]


@pytest.mark.asyncio
async def test_chat_gives_up_after_retry_budget(monkeypatch):
    network_error = APIConnectionError(request=httpx.Request("POST", "http://lm.test/v1/chat/completions"))
    llm = FakeLLM([([], network_error), ([], network_error)])
    adapter = OpenAICompatAdapter()
    monkeypatch.setattr(adapter, "create_llm", lambda agent: llm)
    logs = []

    events = await _collect(
        adapter,
        ChatRequest(agent=_agent(), input="hi", retry=RetryConfig(delay_sec=0, max=1), on_log=logs.append),
    )

    assert llm.calls == 2
    assert logs == ["[retry] network error, attempt 1/1, waiting 0s"]
    assert len(events) == 1
    assert events[0].type == "done"
    assert events[0].text.startswith("Request failed")


@pytest.mark.asyncio
async def test_chat_keeps_partial_output_when_stream_breaks(monkeypatch):
    llm = FakeLLM([(["partial"], _rate_limit())])
    adapter = OpenAICompatAdapter()
    monkeypatch.setattr(adapter, "create_llm", lambda agent: llm)

    events = await _collect(
        adapter, ChatRequest(agent=_agent(), input="hi", retry=RetryConfig(delay_sec=0, max=3))
    )

    assert llm.calls == 1
    assert events[-1].text == "partial"


@pytest.mark.asyncio
async def test_detect_recognizes_model_list():
    with respx.mock(assert_all_called=True) as respx_mock:
        respx_mock.get("http://lm.test/v1/models").mock(
            return_value=Response(200, json={"data": [{"id": "local"}]})
        )
        result = await OpenAICompatAdapter().detect(_agent())

    assert result.ok is True
    assert result.detected_type == "openai_compat"


@pytest.mark.asyncio
async def test_detect_reports_http_errors():
    with respx.mock(assert_all_called=True) as respx_mock:
        respx_mock.get("http://lm.test/v1/models").mock(return_value=Response(401))
        result = await OpenAICompatAdapter().detect(_agent())

    assert result.ok is False
    assert result.notes == "HTTP 401"


@pytest.mark.asyncio
async def test_detect_without_endpoint():
    agent = AgentConfig(id="x", name="X")
    result = await OpenAICompatAdapter().detect(agent)
    assert result.ok is False
    assert result.notes == "No endpoint"
