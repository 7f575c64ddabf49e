from __future__ import annotations

import pytest
from pydantic import BaseModel

from todo_mcp.models import AddTodoArgs, UpdateTodoArgs
from todo_mcp.registry import ToolRegistry, ToolResult
from todo_mcp.todo_client import TodoApiClient
from todo_mcp.tools import build_registry


async def _noop(args: BaseModel) -> ToolResult:
    return ToolResult("ok")


async def _other(args: BaseModel) -> ToolResult:
    return ToolResult("other")


def test_register_and_lookup() -> None:
    registry = ToolRegistry()
    registry.register("addTodoItem", "Add a new todo item", AddTodoArgs, _noop)

    assert "addTodoItem" in registry
    assert len(registry) == 1
    assert registry.get("addTodoItem").params_model is AddTodoArgs
    assert registry.get("missing") is None


def test_reregistering_a_name_replaces_it() -> None:
    registry = ToolRegistry()
    registry.register("addTodoItem", "first", AddTodoArgs, _noop)
    registry.register("addTodoItem", "second", AddTodoArgs, _other)

    assert registry.names() == ["addTodoItem"]
    tool = registry.get("addTodoItem")
    assert tool.description == "second"
    assert tool.handler is _other


def test_blank_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        ToolRegistry().register("  ", "blank", AddTodoArgs, _noop)


def test_descriptor_schema_lists_types_and_required_fields() -> None:
    registry = ToolRegistry()
    registry.register("updateTodoItem", "Update a todo item", UpdateTodoArgs, _noop)

    (descriptor,) = registry.list_descriptors()

    assert descriptor["name"] == "updateTodoItem"
    assert descriptor["description"] == "Update a todo item"
    schema = descriptor["inputSchema"]
    assert schema["type"] == "object"
    assert schema["properties"]["id"]["type"] == "integer"
    assert schema["properties"]["completed"]["type"] == "boolean"
    assert sorted(schema["required"]) == ["completed", "id"]


def test_todo_tools_are_registered_in_order() -> None:
    registry = build_registry(TodoApiClient("http://todo-store.test"))

    assert registry.names() == ["addTodoItem", "deleteTodoItem", "updateTodoItem"]
    add = registry.get("addTodoItem").descriptor()["inputSchema"]
    assert add["properties"]["title"]["type"] == "string"
    assert add["required"] == ["title"]
    delete = registry.get("deleteTodoItem").descriptor()["inputSchema"]
    assert delete["required"] == ["id"]
