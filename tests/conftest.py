from __future__ import annotations

import asyncio
import heapq
import itertools
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from todo_mcp.todo_client import TodoApiClient

TODO_API_URL = "http://todo-store.test"


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class VirtualClock:
    """Deterministic clock: sleepers wake only when ``advance`` passes them."""

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._sleepers: List[Tuple[float, int, asyncio.Future]] = []

    def now(self) -> float:
        return self._now

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self._now + seconds, next(self._seq), fut))
        await fut

    async def advance(self, seconds: float) -> None:
        target = self._now + seconds
        await settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            wake, _, fut = heapq.heappop(self._sleepers)
            self._now = wake
            if not fut.done():
                fut.set_result(None)
            await settle()
        self._now = target


class FakeTodoStore:
    """In-memory stand-in for the REST todo service."""

    def __init__(self) -> None:
        self.todos: Dict[int, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.fail_status: Optional[int] = None
        self.unreachable = False
        self._ids = itertools.count(1)

    def add(self, title: str, completed: bool = False) -> Dict[str, Any]:
        todo_id = next(self._ids)
        todo = {"id": todo_id, "title": title, "completed": completed}
        self.todos[todo_id] = todo
        return todo

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="store unavailable")

        if path == "/todos":
            if request.method == "GET":
                return httpx.Response(200, json=list(self.todos.values()))
            if request.method == "POST":
                body = json.loads(request.content or b"{}")
                return httpx.Response(201, json=self.add(body["title"]))

        if path.startswith("/todos/"):
            try:
                todo_id = int(path.rsplit("/", 1)[1])
            except ValueError:
                return httpx.Response(400, json={"error": "bad id"})
            todo = self.todos.get(todo_id)
            if todo is None:
                return httpx.Response(404, json={"error": "not found"})
            if request.method == "DELETE":
                del self.todos[todo_id]
                return httpx.Response(204)
            if request.method == "PUT":
                body = json.loads(request.content or b"{}")
                todo["completed"] = bool(body.get("completed"))
                return httpx.Response(200, json=todo)

        return httpx.Response(405)


@pytest.fixture
def store() -> FakeTodoStore:
    return FakeTodoStore()


@pytest.fixture
def todo_client(store: FakeTodoStore) -> TodoApiClient:
    return TodoApiClient(TODO_API_URL, timeout_seconds=5, transport=httpx.MockTransport(store.handler))


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()
