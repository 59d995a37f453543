"""Connection and tool REST API models."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from toolrelay_core.mcp.registry import is_valid_url
from toolrelay_core.types import ConnectionType


class HttpConnectionCreateRequest(BaseModel):
    """Create a network (streamable HTTP / SSE) connection."""

    name: str = Field(..., min_length=1)
    url: str

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not is_valid_url(value):
            raise ValueError("url must be a valid http(s) URL")
        return value


class StdioConnectionCreateRequest(BaseModel):
    """Create a subprocess (stdio) connection."""

    name: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1)
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


class ConnectionResponse(BaseModel):
    """A registered connection."""

    id: str
    name: str
    type: ConnectionType
    url: str | None = None
    command: str | None = None
    args: list[str] | None = None
    env_keys: list[str] | None = None


class ConnectionListResponse(BaseModel):
    """Connection list response."""

    connections: list[ConnectionResponse]
    total: int


class ConnectionDeleteResponse(BaseModel):
    """Connection removal response."""

    id: str
    removed: bool


class ToolInfo(BaseModel):
    """Tool descriptor returned by a provider."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] | None = None


class ToolListResponse(BaseModel):
    """Tool list response for one connection."""

    connection_id: str
    tools: list[ToolInfo]
    total: int


class ToolCallRequest(BaseModel):
    """Tool call request. params is passed to the provider as-is."""

    params: Any = None


class ToolCallResponse(BaseModel):
    """Tool call response."""

    connection_id: str
    tool_name: str
    duration_ms: int
    result: Any
