from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from .config import APP_NAME, APP_VERSION
from .models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    JsonRpcRequest,
    jsonrpc_error,
    jsonrpc_result,
)
from .registry import ToolRegistry

logger = logging.getLogger(APP_NAME)


class DispatchError(Exception):
    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


MethodHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class Dispatcher:
    """Routes JSON-RPC envelopes to MCP methods and registered tools.

    ``dispatch`` always returns a well-formed response envelope, or ``None``
    for notifications.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_name: str = APP_NAME,
        server_version: str = APP_VERSION,
    ) -> None:
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self._methods: Dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    def server_info(self) -> Dict[str, Any]:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {"name": self.server_name, "version": self.server_version},
            "capabilities": {"tools": {}},
        }

    async def dispatch(self, payload: Any) -> Optional[Dict[str, Any]]:
        id_value = payload.get("id") if isinstance(payload, dict) else None
        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError as exc:
            return jsonrpc_error(
                id_value,
                INVALID_REQUEST,
                "Invalid Request",
                exc.errors(include_url=False, include_context=False),
            )

        method = (request.method or "").strip()
        # an explicit "id": null is still a request
        if "id" not in payload:
            logger.debug("notification_received: %s", method)
            return None

        handler = self._methods.get(method)
        if handler is None:
            return jsonrpc_error(request.id, METHOD_NOT_FOUND, "Method not found")

        try:
            result = await handler(request.params or {})
        except DispatchError as exc:
            return jsonrpc_error(request.id, exc.code, exc.message, exc.data)
        except Exception as exc:  # noqa: BLE001
            logger.exception("dispatch_failed: method=%s", method)
            return jsonrpc_error(request.id, INTERNAL_ERROR, "Internal error", str(exc))
        return jsonrpc_result(request.id, result)

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.server_info()

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": self.registry.list_descriptors()}

    async def _tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = str(params.get("name") or "").strip()
        if not tool_name:
            raise DispatchError(INVALID_PARAMS, "Missing tool name")

        tool = self.registry.get(tool_name)
        if tool is None:
            raise DispatchError(METHOD_NOT_FOUND, "Method not found")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise DispatchError(INVALID_PARAMS, f"Invalid arguments for tool '{tool_name}'")
        try:
            args = tool.params_model.model_validate(arguments)
        except ValidationError as exc:
            raise DispatchError(
                INVALID_PARAMS,
                f"Invalid arguments for tool '{tool_name}'",
                exc.errors(include_url=False, include_context=False),
            ) from exc

        outcome = await tool.handler(args)
        result: Dict[str, Any] = {"content": [{"type": "text", "text": outcome.text}]}
        if outcome.is_error:
            result["isError"] = True
        return result
