from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

APP_NAME = "todo-mcp-server"
APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    host: str = Field("0.0.0.0", alias="TODO_MCP_HOST")
    port: int = Field(3001, alias="TODO_MCP_PORT")
    todo_api_url: str = Field("http://localhost:8080", alias="TODO_API_URL")
    todo_api_timeout_seconds: float = Field(10.0, alias="TODO_API_TIMEOUT_SECONDS")
    allow_origins: Optional[str] = Field(None, alias="TODO_MCP_ALLOW_ORIGINS")
    keepalive_seconds: float = Field(30.0, gt=0, alias="TODO_MCP_KEEPALIVE_SECONDS")
    stream_lifetime_seconds: float = Field(300.0, gt=0, alias="TODO_MCP_STREAM_LIFETIME_SECONDS")
    strict_results: bool = Field(False, alias="TODO_MCP_STRICT_RESULTS")
    log_level: str = Field("INFO", alias="TODO_MCP_LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    def cors_origins(self) -> List[str]:
        if not self.allow_origins:
            return ["*"]
        return [origin.strip() for origin in self.allow_origins.split(",") if origin.strip()]

    def todo_api_base(self) -> str:
        return (self.todo_api_url or "").strip().rstrip("/")
