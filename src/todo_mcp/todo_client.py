from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

import httpx
from pydantic import ValidationError

from .config import APP_NAME
from .models import Todo

logger = logging.getLogger(APP_NAME)

TodoId = Union[int, str]


class TodoApiClient:
    """Async client for the external REST todo store.

    Every call is a single attempt. Failures are logged and folded into a
    ``None``/``False`` outcome; nothing is raised to the caller.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or "").strip().rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout_seconds, transport=self._transport)

    async def _request(self, op: str, method: str, path: str, *, json: Any = None) -> Optional[httpx.Response]:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.error("%s_request_failed: %s", op, str(exc) or exc.__class__.__name__)
            return None
        if resp.status_code >= 400:
            logger.error("%s_rejected: status=%s body=%s", op, resp.status_code, (resp.text or "").strip()[:500])
            return None
        return resp

    async def create(self, title: str) -> Optional[Todo]:
        if not isinstance(title, str) or not title.strip():
            logger.warning("add_todo_skipped: empty title")
            return None
        resp = await self._request("add_todo", "POST", "/todos", json={"title": title})
        if resp is None:
            return None
        try:
            return Todo.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("add_todo_bad_response: %s", exc)
            return None

    async def delete(self, todo_id: TodoId) -> bool:
        logger.info("delete_todo: id=%s", todo_id)
        resp = await self._request("delete_todo", "DELETE", f"/todos/{todo_id}")
        return resp is not None

    async def update(self, todo_id: TodoId, completed: bool) -> bool:
        resp = await self._request("update_todo", "PUT", f"/todos/{todo_id}", json={"completed": bool(completed)})
        return resp is not None

    async def list(self) -> Optional[List[Todo]]:
        resp = await self._request("list_todos", "GET", "/todos")
        if resp is None:
            return None
        try:
            items = resp.json()
            if not isinstance(items, list):
                raise ValueError("expected a JSON array")
            return [Todo.model_validate(it) for it in items]
        except (ValueError, ValidationError) as exc:
            logger.error("list_todos_bad_response: %s", exc)
            return None
