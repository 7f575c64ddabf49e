from __future__ import annotations

import logging

import pytest

from todo_mcp.todo_client import TodoApiClient

from .conftest import FakeTodoStore


@pytest.mark.asyncio
async def test_create_returns_stored_todo(todo_client: TodoApiClient, store: FakeTodoStore) -> None:
    todo = await todo_client.create("Buy milk")

    assert todo is not None
    assert todo.title == "Buy milk"
    assert todo.completed is False
    assert store.todos[todo.id]["title"] == "Buy milk"
    assert store.requests == [("POST", "/todos")]


@pytest.mark.asyncio
async def test_create_with_empty_title_skips_request(todo_client: TodoApiClient, store: FakeTodoStore) -> None:
    assert await todo_client.create("") is None
    assert await todo_client.create("   ") is None
    assert store.requests == []


@pytest.mark.asyncio
async def test_create_logs_and_returns_none_on_rejection(
    todo_client: TodoApiClient, store: FakeTodoStore, caplog: pytest.LogCaptureFixture
) -> None:
    store.fail_status = 500

    with caplog.at_level(logging.ERROR):
        assert await todo_client.create("Buy milk") is None

    assert "add_todo_rejected" in caplog.text
    assert "status=500" in caplog.text


@pytest.mark.asyncio
async def test_transport_failure_is_not_raised(
    todo_client: TodoApiClient, store: FakeTodoStore, caplog: pytest.LogCaptureFixture
) -> None:
    store.unreachable = True

    with caplog.at_level(logging.ERROR):
        assert await todo_client.create("Buy milk") is None
        assert await todo_client.delete(1) is False
        assert await todo_client.update(1, True) is False
        assert await todo_client.list() is None

    assert "add_todo_request_failed" in caplog.text
    assert "connection refused" in caplog.text


@pytest.mark.asyncio
async def test_delete_reports_outcome(todo_client: TodoApiClient, store: FakeTodoStore) -> None:
    todo = store.add("Walk dog")

    assert await todo_client.delete(todo["id"]) is True
    assert todo["id"] not in store.todos
    assert await todo_client.delete(todo["id"]) is False


@pytest.mark.asyncio
async def test_update_sets_completed(todo_client: TodoApiClient, store: FakeTodoStore) -> None:
    todo = store.add("Walk dog")

    assert await todo_client.update(todo["id"], True) is True
    assert store.todos[todo["id"]]["completed"] is True
    assert await todo_client.update(999, True) is False


@pytest.mark.asyncio
async def test_list_returns_all_todos(todo_client: TodoApiClient, store: FakeTodoStore) -> None:
    store.add("a")
    store.add("b", completed=True)

    todos = await todo_client.list()

    assert todos is not None
    assert [(t.title, t.completed) for t in todos] == [("a", False), ("b", True)]


def test_base_url_is_normalised() -> None:
    assert TodoApiClient(" http://store:8080/ ").base_url == "http://store:8080"
