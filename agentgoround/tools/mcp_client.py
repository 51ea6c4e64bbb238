"""
MCP over SSE (client side).

Requests are POSTed to the companion `/rpc` endpoint (the SSE URL with a
trailing `/sse` replaced by `/rpc`). A reply either comes back in the POST
body or later as a `data:` frame on the SSE push channel, matched by id.
"""

import asyncio
import contextlib
import json
import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Optional

import httpx

from agentgoround.api.models.mcp_server import McpServerConfig

logger = logging.getLogger(__name__)

RpcResponse = Dict[str, Any]

DEFAULT_REQUEST_TIMEOUT = 15.0

_SSE_SUFFIX_RE = re.compile(r"/sse$")


def rpc_url_for(sse_url: str) -> str:
    """Derive the request/response endpoint from an SSE URL."""
    url = httpx.URL(sse_url)
    return str(url.copy_with(path=_SSE_SUFFIX_RE.sub("/rpc", url.path)))


class McpSseClient:
    """One push connection plus request/response calls against a tool server."""

    def __init__(
        self,
        server: McpServerConfig,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        id_factory: Optional[Callable[[], str]] = None,
        on_log: Optional[Callable[[str], None]] = None,
    ):
        self.server = server
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._on_log = on_log
        self._pending: Dict[str, "asyncio.Future[RpcResponse]"] = {}
        self._orphans: Dict[str, RpcResponse] = {}
        self._listener: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._listener is not None

    async def __aenter__(self) -> "McpSseClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the SSE push channel; calling twice is a no-op."""
        if self._listener is not None:
            return
        if self._client is None:
            self._client = httpx.AsyncClient()
        self._listener = asyncio.create_task(self._listen())

    async def close(self) -> None:
        """Stop the push listener, fail pending calls and release the HTTP client."""
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()
        self._orphans.clear()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, params: Any = None) -> RpcResponse:
        """
        Issue one RPC call.

        Returns:
            `{id, result}` or `{id, error}`; a push reply that never arrives
            yields `{id, error: "timeout"}`
        """
        if self._client is None:
            await self.connect()
        request_id = self._id_factory()
        payload: Dict[str, Any] = {"id": request_id, "method": method}
        if params is not None:
            payload["params"] = params

        loop = asyncio.get_running_loop()
        future: "asyncio.Future[RpcResponse]" = loop.create_future()
        self._pending[request_id] = future
        try:
            immediate = await self._post_rpc(payload)
            if immediate is not None:
                return immediate
            orphan = self._orphans.pop(request_id, None)
            if orphan is not None:
                return orphan
            try:
                return await asyncio.wait_for(future, timeout=self.timeout)
            except asyncio.TimeoutError:
                self._log(f"MCP request {method} ({request_id}) timed out after {self.timeout}s")
                return {"id": request_id, "error": "timeout"}
        finally:
            self._pending.pop(request_id, None)

    async def _post_rpc(self, payload: Dict[str, Any]) -> Optional[RpcResponse]:
        response = await self._client.post(rpc_url_for(self.server.sse_url), json=payload)
        if not response.is_success:
            return {"id": payload["id"], "error": f"HTTP {response.status_code}"}
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and ("result" in body or "error" in body):
            return body
        return None

    async def _listen(self) -> None:
        url = self.server.sse_url
        try:
            async with self._client.stream(
                "GET",
                url,
                headers={"Accept": "text/event-stream"},
                timeout=None,
            ) as response:
                if not response.is_success:
                    self._log(f"MCP SSE error: HTTP {response.status_code}")
                    return
                self._log(f"MCP SSE connected: {url}")
                data_lines: List[str] = []
                async for line in response.aiter_lines():
                    if line.startswith("data:"):
                        data_lines.append(line[5:].strip())
                    elif not line.strip() and data_lines:
                        self._dispatch("\n".join(data_lines))
                        data_lines = []
                if data_lines:
                    self._dispatch("\n".join(data_lines))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._log(f"MCP SSE error: {e}")

    def _dispatch(self, data: str) -> None:
        try:
            message = json.loads(data)
        except ValueError:
            self._log(f"MCP SSE parse failed: {data}")
            return
        if not isinstance(message, dict) or message.get("id") is None:
            return
        message_id = str(message["id"])
        future = self._pending.pop(message_id, None)
        if future is not None and not future.done():
            future.set_result(message)
        else:
            self._orphans[message_id] = message

    def _log(self, text: str) -> None:
        if self._on_log:
            self._on_log(text)
        else:
            logger.info(text)
