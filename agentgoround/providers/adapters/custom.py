"""
Custom HTTP Adapter

Adapter for arbitrary JSON endpoints described by a body template and a
response path.
"""
import json
import logging
import re
from typing import Any, AsyncIterator, Dict, List, Union

import httpx

from ..base import BaseAgentAdapter, ChatRequest
from ..types import ChatEvent

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_INDEXED_SEGMENT_RE = re.compile(r"^(\w+)\[(\d+)\]$")


def render_template(template: str, variables: Dict[str, str]) -> str:
    """Replace `{{ key }}` placeholders; unknown keys render as empty strings."""
    return _PLACEHOLDER_RE.sub(lambda m: variables.get(m.group(1), ""), template)


def get_by_path(data: Any, path: str) -> Any:
    """Minimal JSONPath-like getter supporting `$.a.b[0].c`."""
    parts: List[Union[str, int]] = []
    for segment in re.sub(r"^\$\.?", "", path).split("."):
        if not segment:
            continue
        match = _INDEXED_SEGMENT_RE.match(segment)
        if match:
            parts.extend([match.group(1), int(match.group(2))])
        else:
            parts.append(segment)

    current = data
    for part in parts:
        if current is None:
            return None
        try:
            current = current[part]
        except (KeyError, IndexError, TypeError):
            return None
    return current


class CustomAdapter(BaseAgentAdapter):
    """Single-shot adapter: one POST, one `done` event."""

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    async def chat(self, request: ChatRequest) -> AsyncIterator[ChatEvent]:
        template = request.agent.custom
        if template is None:
            yield ChatEvent(type="done", text="Custom adapter missing config.")
            return

        history = "\n".join(f"{m.role}: {m.content}" for m in request.history)
        body = render_template(
            template.body_template,
            {
                "input": request.input,
                "history": history,
                "model": request.agent.model or "",
            },
        )
        headers = {"Content-Type": "application/json", **request.agent.headers}
        if request.agent.api_key:
            headers["Authorization"] = f"Bearer {request.agent.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(template.method, template.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Custom adapter request failed: %s", e)
            yield ChatEvent(type="done", text=f"Request failed: {e}")
            return

        text = response.text
        if response.status_code >= 400:
            yield ChatEvent(type="done", text=f"HTTP {response.status_code}\n{text}")
            return

        try:
            value = get_by_path(json.loads(text), template.response_json_path)
        except ValueError:
            # Plain-text body
            yield ChatEvent(type="done", text=text)
            return

        if isinstance(value, str):
            yield ChatEvent(type="done", text=value)
        else:
            yield ChatEvent(type="done", text=json.dumps(value, indent=2, ensure_ascii=False))
