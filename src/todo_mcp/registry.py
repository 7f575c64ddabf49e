from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False


ToolHandler = Callable[[BaseModel], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    params_model: Type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> Dict[str, Any]:
        schema = self.params_model.model_json_schema()
        properties: Dict[str, Any] = {}
        for key, prop in (schema.get("properties") or {}).items():
            prop = dict(prop)
            prop.pop("title", None)
            properties[key] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": list(schema.get("required") or []),
        }

    def descriptor(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


class ToolRegistry:
    """Named tools exposed through ``tools/list`` and ``tools/call``.

    Registering a name twice replaces the earlier definition.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        name: str,
        description: str,
        params_model: Type[BaseModel],
        handler: ToolHandler,
    ) -> ToolDefinition:
        name = (name or "").strip()
        if not name:
            raise ValueError("tool name must be non-empty")
        tool = ToolDefinition(name=name, description=description, params_model=params_model, handler=handler)
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def list_descriptors(self) -> List[Dict[str, Any]]:
        return [tool.descriptor() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())
