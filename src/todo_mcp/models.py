from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcRequest(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: Optional[Any] = None
    method: str
    params: Optional[Dict[str, Any]] = None


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


def jsonrpc_result(id_value: Any, result: Any) -> Dict[str, Any]:
    # result is serialised as-is so nulls inside tool payloads survive
    return {"jsonrpc": JSONRPC_VERSION, "id": id_value, "result": result}


def jsonrpc_error(id_value: Any, code: int, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    error = JsonRpcError(code=code, message=message, data=data).model_dump(exclude_none=True)
    return {"jsonrpc": JSONRPC_VERSION, "id": id_value, "error": error}


class Todo(BaseModel):
    id: Union[int, str]
    title: str
    completed: bool = False


class AddTodoArgs(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    title: str = Field(..., min_length=1, description="Title for new Todo")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value


class DeleteTodoArgs(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    id: int = Field(..., description="ID of the Todo to delete")


class UpdateTodoArgs(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    id: int = Field(..., description="ID of the Todo to update")
    completed: bool = Field(..., description="Completion status of the Todo")
