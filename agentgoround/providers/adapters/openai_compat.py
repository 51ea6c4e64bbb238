"""
OpenAI-compatible Adapter

Adapter for OpenAI and compatible chat/completions APIs (LM Studio, vLLM, OpenRouter, etc.)
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List

import httpx
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import APIConnectionError, APIStatusError, RateLimitError

from ..base import BaseAgentAdapter, ChatRequest
from ..types import AgentConfig, ChatEvent, ChatMessage, DetectResult

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


def to_langchain_message(message: ChatMessage) -> BaseMessage:
    """Convert one chat message; tool results are flattened into assistant text."""
    if message.role == "tool":
        return AIMessage(content=f"[tool:{message.name or 'tool'}]\n{message.content}")
    if message.role == "assistant":
        return AIMessage(content=message.content)
    if message.role == "system":
        return SystemMessage(content=message.content)
    return HumanMessage(content=message.content)


def build_langchain_messages(request: ChatRequest) -> List[BaseMessage]:
    """Build `[system?] + history + user input` for one completion."""
    messages: List[BaseMessage] = []
    system = (request.system or "").strip()
    if system:
        messages.append(SystemMessage(content=system))
    messages.extend(to_langchain_message(m) for m in request.history)
    messages.append(HumanMessage(content=request.input))
    return messages


class OpenAICompatAdapter(BaseAgentAdapter):
    """
    Adapter for OpenAI-compatible endpoints.

    Streaming is delegated to ChatOpenAI; transient failures (HTTP 429,
    network errors) are retried here so every attempt can be reported
    through the request's log sink.
    """

    @staticmethod
    def _endpoint(agent: AgentConfig) -> str:
        return (agent.endpoint or "").rstrip("/")

    def create_llm(self, agent: AgentConfig) -> Any:
        """
        Create a ChatOpenAI instance for the agent.

        Library-level retries are disabled so the retry policy stays with the caller.
        """
        llm_kwargs: Dict[str, Any] = {
            "model": agent.model or DEFAULT_MODEL,
            "base_url": self._endpoint(agent) or None,
            "api_key": agent.api_key or "EMPTY",
            "streaming": True,
            "max_retries": 0,
        }
        if agent.headers:
            llm_kwargs["default_headers"] = dict(agent.headers)
        return ChatOpenAI(**llm_kwargs)

    async def chat(self, request: ChatRequest) -> AsyncIterator[ChatEvent]:
        retry_delay = max(0.0, request.retry.delay_sec if request.retry else 0.0)
        retry_max = max(0, request.retry.max if request.retry else 0)
        messages = build_langchain_messages(request)
        llm = self.create_llm(request.agent)

        attempt = 0
        while True:
            full = ""
            try:
                async for chunk in llm.astream(messages):
                    content = chunk.content if isinstance(chunk.content, str) else ""
                    if content:
                        full += content
                        yield ChatEvent(type="delta", text=content)
                yield ChatEvent(type="done", text=full)
                return
            except (RateLimitError, APIConnectionError) as e:
                if full:
                    logger.warning("Stream interrupted after partial output: %s", e)
                    yield ChatEvent(type="done", text=full)
                    return
                if attempt < retry_max:
                    attempt += 1
                    reason = "HTTP 429" if isinstance(e, RateLimitError) else "network error"
                    request.log(
                        f"[retry] {reason}, attempt {attempt}/{retry_max}, waiting {retry_delay:g}s"
                    )
                    await asyncio.sleep(retry_delay)
                    continue
                if isinstance(e, APIStatusError):
                    yield ChatEvent(type="done", text=f"Request failed: HTTP {e.status_code}\n{e.message}")
                else:
                    yield ChatEvent(type="done", text=f"Request failed: {e}")
                return
            except APIStatusError as e:
                yield ChatEvent(type="done", text=f"Request failed: HTTP {e.status_code}\n{e.message}")
                return
            except Exception as e:
                logger.warning("OpenAI-compatible request failed: %s", e)
                yield ChatEvent(type="done", text=f"Request failed: {e}")
                return

    async def detect(self, agent: AgentConfig) -> DetectResult:
        """Query `<endpoint>/models` and check for an OpenAI-style model list."""
        endpoint = self._endpoint(agent)
        if not endpoint:
            return DetectResult(ok=False, detected_type="unknown", notes="No endpoint")

        headers = dict(agent.headers)
        if agent.api_key:
            headers["Authorization"] = f"Bearer {agent.api_key}"
        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.get(f"{endpoint}/models", headers=headers)
            if response.status_code >= 400:
                return DetectResult(ok=False, detected_type="unknown", notes=f"HTTP {response.status_code}")
            data = response.json()
        except Exception as e:
            return DetectResult(ok=False, detected_type="unknown", notes=str(e) or "detect failed")

        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return DetectResult(ok=True, detected_type="openai_compat")
        return DetectResult(ok=False, detected_type="unknown", notes="Unexpected /models response")
