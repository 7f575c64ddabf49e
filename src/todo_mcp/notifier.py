from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol

from .config import APP_NAME

logger = logging.getLogger(APP_NAME)

DEFAULT_KEEPALIVE_SECONDS = 30.0
DEFAULT_LIFETIME_SECONDS = 300.0


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def _check_timers(keepalive_interval: float, lifetime: float) -> None:
    if keepalive_interval <= 0:
        raise ValueError(f"keepalive_interval must be positive, got {keepalive_interval!r}")
    if lifetime <= 0:
        raise ValueError(f"lifetime must be positive, got {lifetime!r}")


class Clock(Protocol):
    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class MonotonicClock:
    def now(self) -> float:
        return asyncio.get_running_loop().time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ConnectionState(str, Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ConnectionClosed(Exception):
    pass


@dataclass(frozen=True)
class StreamEvent:
    event: str
    data: Any

    def encode(self) -> str:
        return f"event: {self.event}\ndata: {_json_dumps(self.data)}\n\n"


class StreamConnection:
    """One subscriber stream: OPEN -> CLOSING -> CLOSED.

    Owns a keep-alive task and a lifetime task; both are cancelled on close.
    Frames are queued without bound, so emitting never waits on the reader.
    """

    def __init__(
        self,
        session_id: str,
        server_info: Dict[str, Any],
        *,
        keepalive_interval: float = DEFAULT_KEEPALIVE_SECONDS,
        lifetime: float = DEFAULT_LIFETIME_SECONDS,
        clock: Optional[Clock] = None,
        on_close: Optional[Callable[["StreamConnection"], None]] = None,
    ) -> None:
        _check_timers(keepalive_interval, lifetime)
        self.session_id = session_id
        self.server_info = server_info
        self.keepalive_interval = keepalive_interval
        self.lifetime = lifetime
        self.clock: Clock = clock or MonotonicClock()
        self.state = ConnectionState.OPEN
        self.opened_at = 0.0
        # serialises requests dispatched on behalf of this session
        self.lock = asyncio.Lock()
        self._on_close = on_close
        self._queue: "asyncio.Queue[Optional[StreamEvent]]" = asyncio.Queue()
        self._keepalive_task: Optional[asyncio.Task] = None
        self._lifetime_task: Optional[asyncio.Task] = None
        self._started = False

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.opened_at = self.clock.now()
        self.emit("server_info", self.server_info)
        self._keepalive_task = asyncio.create_task(self._keepalive_loop())
        self._lifetime_task = asyncio.create_task(self._expire())

    def emit(self, event: str, data: Any) -> None:
        if self.state is not ConnectionState.OPEN:
            raise ConnectionClosed(self.session_id)
        self._queue.put_nowait(StreamEvent(event, data))

    async def _keepalive_loop(self) -> None:
        while True:
            await self.clock.sleep(self.keepalive_interval)
            if self.clock.now() - self.opened_at >= self.lifetime:
                return
            try:
                self.emit("ping", {"ts": self.clock.now()})
            except ConnectionClosed:
                return

    async def _expire(self) -> None:
        await self.clock.sleep(self.lifetime)
        logger.info("stream_expired: session=%s", self.session_id)
        self.close()

    def close(self) -> None:
        if self.state is not ConnectionState.OPEN:
            return
        self.state = ConnectionState.CLOSING
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in (self._keepalive_task, self._lifetime_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._queue.put_nowait(None)
        self.state = ConnectionState.CLOSED
        if self._on_close is not None:
            self._on_close(self)

    def timers_active(self) -> bool:
        return any(t is not None and not t.done() for t in (self._keepalive_task, self._lifetime_task))

    async def events(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            yield item


class StreamingNotifier:
    """Registry of open subscriber streams plus broadcast of change events."""

    def __init__(
        self,
        server_info: Optional[Dict[str, Any]] = None,
        *,
        keepalive_interval: float = DEFAULT_KEEPALIVE_SECONDS,
        lifetime: float = DEFAULT_LIFETIME_SECONDS,
        clock: Optional[Clock] = None,
        message_endpoint: str = "/messages",
    ) -> None:
        _check_timers(keepalive_interval, lifetime)
        self.server_info = dict(server_info or {})
        self.keepalive_interval = keepalive_interval
        self.lifetime = lifetime
        self.clock: Clock = clock or MonotonicClock()
        self.message_endpoint = message_endpoint
        self._connections: Dict[str, StreamConnection] = {}

    def open(self) -> StreamConnection:
        session_id = uuid.uuid4().hex
        info = dict(self.server_info)
        info["sessionId"] = session_id
        info["endpoint"] = f"{self.message_endpoint}?sessionId={session_id}"
        conn = StreamConnection(
            session_id,
            info,
            keepalive_interval=self.keepalive_interval,
            lifetime=self.lifetime,
            clock=self.clock,
            on_close=self.discard,
        )
        self._connections[session_id] = conn
        conn.start()
        logger.info("stream_opened: session=%s open=%s", session_id, len(self._connections))
        return conn

    def get(self, session_id: str) -> Optional[StreamConnection]:
        return self._connections.get(session_id)

    def discard(self, conn: StreamConnection) -> None:
        if self._connections.get(conn.session_id) is conn:
            del self._connections[conn.session_id]
            logger.info("stream_closed: session=%s open=%s", conn.session_id, len(self._connections))

    def connections(self) -> List[StreamConnection]:
        return list(self._connections.values())

    def publish(self, channel: str, data: Any) -> int:
        delivered = 0
        for conn in self.connections():
            try:
                conn.emit("publish", {"channel": channel, "data": data})
                delivered += 1
            except ConnectionClosed:
                self.discard(conn)
        return delivered

    def send(self, session_id: str, payload: Any) -> bool:
        conn = self._connections.get(session_id)
        if conn is None:
            return False
        try:
            conn.emit("message", payload)
        except ConnectionClosed:
            self.discard(conn)
            return False
        return True

    def close_all(self) -> None:
        for conn in self.connections():
            conn.close()
