"""Todo list MCP tool server."""

from .config import APP_NAME, APP_VERSION, Settings
from .dispatcher import Dispatcher
from .http_server import create_app
from .notifier import StreamConnection, StreamingNotifier
from .registry import ToolDefinition, ToolRegistry, ToolResult
from .todo_client import TodoApiClient
from .tools import build_registry

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "Dispatcher",
    "Settings",
    "StreamConnection",
    "StreamingNotifier",
    "TodoApiClient",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "create_app",
]
