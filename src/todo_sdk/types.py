from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Union

from pydantic import BaseModel


class Todo(BaseModel):
    id: Union[int, str]
    title: str
    completed: bool = False


def parse_todos(data: Any) -> List[Todo]:
    if not isinstance(data, list):
        return []
    return [Todo.model_validate(item) for item in data]


@dataclass(frozen=True)
class SseEvent:
    event: str
    data: Any
