from __future__ import annotations

import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from .sse import iter_sse_events

logger = logging.getLogger("todo-sdk")

OnData = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass
class McpError(Exception):
    code: int
    message: str
    data: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.message} (code={self.code})"


class TodoSubscriptionClient:
    """Subscribes to channel broadcasts pushed over the server's SSE stream."""

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self.session_id: Optional[str] = None
        self.server_info: Optional[Dict[str, Any]] = None

    async def subscribe(self, channel: str, on_data: OnData, *, max_events: Optional[int] = None) -> int:
        """Call ``on_data`` for each ``channel`` payload until the stream ends.

        Returns the number of payloads delivered. Events missed while
        disconnected are not replayed.
        """
        delivered = 0
        timeout = httpx.Timeout(self.timeout_seconds, read=None)
        async with httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport) as client:
            async with client.stream("GET", "/sse", headers={"Accept": "text/event-stream"}) as resp:
                resp.raise_for_status()
                async for event in iter_sse_events(resp.aiter_lines()):
                    if event.event == "server_info" and isinstance(event.data, dict):
                        self.server_info = event.data
                        self.session_id = event.data.get("sessionId")
                        continue
                    if event.event != "publish" or not isinstance(event.data, dict):
                        continue
                    if event.data.get("channel") != channel:
                        continue
                    result = on_data(event.data.get("data"))
                    if inspect.isawaitable(result):
                        await result
                    delivered += 1
                    if max_events is not None and delivered >= max_events:
                        break
        logger.debug("subscription_ended: channel=%s delivered=%s", channel, delivered)
        return delivered


class TodoToolClient:
    """JSON-RPC client for the server's ``/mcp`` endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._ids = itertools.count(1)

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout_seconds, transport=self._transport
        ) as client:
            resp = await client.post("/mcp", json=payload)
        resp.raise_for_status()
        body = resp.json()
        error = body.get("error")
        if error:
            raise McpError(int(error.get("code", 0)), str(error.get("message", "")), error.get("data"))
        return body.get("result")

    async def initialize(self) -> Dict[str, Any]:
        return await self._call("initialize", {})

    async def list_tools(self) -> List[Dict[str, Any]]:
        result = await self._call("tools/list", {})
        return list((result or {}).get("tools") or [])

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        result = await self._call("tools/call", {"name": name, "arguments": arguments or {}})
        content = (result or {}).get("content") or []
        return "\n".join(str(part.get("text", "")) for part in content if part.get("type") == "text")
