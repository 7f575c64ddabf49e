from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .config import APP_NAME, APP_VERSION, Settings
from .dispatcher import Dispatcher
from .models import PARSE_ERROR, jsonrpc_error
from .notifier import Clock, StreamConnection, StreamingNotifier
from .todo_client import TodoApiClient
from .tools import build_registry

logger = logging.getLogger(APP_NAME)


_INVALID_JSON = object()


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw or b"null")
    except ValueError:
        return _INVALID_JSON


def create_app(
    settings: Optional[Settings] = None,
    *,
    client: Optional[TodoApiClient] = None,
    notifier: Optional[StreamingNotifier] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or Settings()
    client = client or TodoApiClient(settings.todo_api_base(), timeout_seconds=settings.todo_api_timeout_seconds)
    notifier = notifier or StreamingNotifier(
        keepalive_interval=settings.keepalive_seconds,
        lifetime=settings.stream_lifetime_seconds,
        clock=clock,
    )
    registry = build_registry(client, notifier, strict_results=settings.strict_results)
    dispatcher = Dispatcher(registry, server_name=APP_NAME, server_version=APP_VERSION)
    if not notifier.server_info:
        notifier.server_info = dispatcher.server_info()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("startup: todo_api=%s tools=%s", client.base_url, ",".join(registry.names()))
        yield
        notifier.close_all()

    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_headers=["*"],
        allow_methods=["*"],
    )
    app.state.settings = settings
    app.state.client = client
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.notifier = notifier

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "service": APP_NAME, "version": APP_VERSION}

    @app.get("/.well-known/mcp.json")
    async def well_known() -> Dict[str, Any]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "description": "Todo list MCP provider (add, delete, update todo items).",
            "capabilities": {"tools": registry.list_descriptors()},
        }

    @app.get("/tools")
    async def tools() -> Dict[str, Any]:
        return {"tools": registry.list_descriptors()}

    @app.post("/mcp")
    async def mcp(request: Request) -> Response:
        payload = await _read_json(request)
        if payload is _INVALID_JSON:
            return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error"))
        response = await dispatcher.dispatch(payload)
        if response is None:
            return Response(status_code=204)
        return JSONResponse(response)

    async def _frames(conn: StreamConnection) -> AsyncIterator[str]:
        try:
            async for event in conn.events():
                yield event.encode()
        finally:
            conn.close()

    @app.get("/sse")
    async def sse() -> StreamingResponse:
        conn = notifier.open()
        return StreamingResponse(
            _frames(conn),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.post("/messages", status_code=202)
    async def messages(request: Request, session_id: str = Query(..., alias="sessionId")) -> Dict[str, Any]:
        conn = notifier.get(session_id)
        if conn is None:
            raise HTTPException(status_code=404, detail="session_not_found")
        payload = await _read_json(request)
        async with conn.lock:
            if payload is _INVALID_JSON:
                response: Optional[Dict[str, Any]] = jsonrpc_error(None, PARSE_ERROR, "Parse error")
            else:
                response = await dispatcher.dispatch(payload)
            if response is not None and not notifier.send(session_id, response):
                logger.warning("message_undelivered: session=%s", session_id)
        return {"ok": True}

    return app


def main() -> None:
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
