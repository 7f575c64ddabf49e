"""Client SDK for the todo MCP server."""

from .client import McpError, TodoSubscriptionClient, TodoToolClient
from .sse import iter_sse_events
from .types import SseEvent, Todo, parse_todos

__all__ = [
    "McpError",
    "SseEvent",
    "Todo",
    "TodoSubscriptionClient",
    "TodoToolClient",
    "iter_sse_events",
    "parse_todos",
]
