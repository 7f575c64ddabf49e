from __future__ import annotations

import json
from typing import AsyncIterable, AsyncIterator, List, Optional

from .types import SseEvent


def _build_event(name: Optional[str], data_lines: List[str]) -> Optional[SseEvent]:
    if not data_lines:
        return None
    raw = "\n".join(data_lines)
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return SseEvent(event=name or "message", data=data)


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncIterator[SseEvent]:
    """Group ``event:``/``data:`` lines into decoded events.

    Frames whose data is not JSON are skipped.
    """
    name: Optional[str] = None
    data_lines: List[str] = []
    async for line in lines:
        line = line.rstrip("\r")
        if not line:
            event = _build_event(name, data_lines)
            name, data_lines = None, []
            if event is not None:
                yield event
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            name = value.strip()
        elif field == "data":
            data_lines.append(value)
    event = _build_event(name, data_lines)
    if event is not None:
        yield event
