from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .config import APP_NAME
from .models import AddTodoArgs, DeleteTodoArgs, UpdateTodoArgs
from .registry import ToolRegistry, ToolResult
from .todo_client import TodoApiClient

if TYPE_CHECKING:
    from .notifier import StreamingNotifier

logger = logging.getLogger(APP_NAME)

TODOS_CHANNEL = "todos"


def build_registry(
    client: TodoApiClient,
    notifier: Optional["StreamingNotifier"] = None,
    *,
    strict_results: bool = False,
) -> ToolRegistry:
    """Register the todo CRUD tools against ``client``.

    With ``strict_results`` off, a failed store call still answers with the
    confirmation text; the failure is only logged.
    """

    async def _publish_todos() -> None:
        if notifier is None:
            return
        todos = await client.list()
        if todos is None:
            return
        delivered = notifier.publish(TODOS_CHANNEL, [t.model_dump() for t in todos])
        logger.debug("todos_published: subscribers=%s count=%s", delivered, len(todos))

    def _outcome(ok: bool, success_text: str, failure_text: str, tool: str) -> ToolResult:
        if ok:
            return ToolResult(success_text)
        logger.warning("%s_store_call_failed", tool)
        if strict_results:
            return ToolResult(failure_text, is_error=True)
        return ToolResult(success_text)

    async def add_todo_item(args: AddTodoArgs) -> ToolResult:
        todo = await client.create(args.title)
        if todo is not None:
            await _publish_todos()
        return _outcome(
            todo is not None,
            f"Added todo: {args.title}",
            f"Failed to add todo: {args.title}",
            "addTodoItem",
        )

    async def delete_todo_item(args: DeleteTodoArgs) -> ToolResult:
        ok = await client.delete(args.id)
        if ok:
            await _publish_todos()
        return _outcome(ok, f"Deleted todo {args.id}", f"Failed to delete todo {args.id}", "deleteTodoItem")

    async def update_todo_item(args: UpdateTodoArgs) -> ToolResult:
        ok = await client.update(args.id, args.completed)
        if ok:
            await _publish_todos()
        return _outcome(
            ok,
            f"Updated todo {args.id} (completed={str(args.completed).lower()})",
            f"Failed to update todo {args.id}",
            "updateTodoItem",
        )

    registry = ToolRegistry()
    registry.register("addTodoItem", "Add a new todo item", AddTodoArgs, add_todo_item)
    registry.register("deleteTodoItem", "Delete a todo item", DeleteTodoArgs, delete_todo_item)
    registry.register("updateTodoItem", "Update a todo item", UpdateTodoArgs, update_todo_item)
    return registry
