"""Connection and tool types shared by the registry, broker and clients."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, runtime_checkable

from toolrelay_core.types import ConnectionType

# Opaque structured data passed through the broker uninterpreted
JSONValue: TypeAlias = None | bool | int | float | str | list["JSONValue"] | dict[str, "JSONValue"]


@dataclass
class ConnectionParams:
    """Caller-supplied connection parameters (a Connection without its id)."""

    name: str
    type: ConnectionType
    url: str | None = None  # http only
    command: str | None = None  # stdio only
    args: list[str] = field(default_factory=list)  # stdio only
    env: dict[str, str] = field(default_factory=dict)  # stdio only


@dataclass
class Connection:
    """A configured tool provider.

    The id is assigned by the ConnectionRegistry and never reused.
    """

    id: str
    name: str
    type: ConnectionType
    url: str | None = None
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_params(cls, connection_id: str, params: ConnectionParams) -> "Connection":
        """Build a Connection record from parameters and a fresh id."""
        return cls(
            id=connection_id,
            name=params.name,
            type=ConnectionType(params.type),
            url=params.url,
            command=params.command,
            args=list(params.args),
            env=dict(params.env),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Environment values are not exposed, only their names.
        """
        data: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type.value}
        if self.type == ConnectionType.HTTP:
            data["url"] = self.url
        else:
            data["command"] = self.command
            data["args"] = list(self.args)
            data["env_keys"] = sorted(self.env)
        return data


@dataclass
class ToolDescriptor:
    """MCP tool schema.

    Represents a tool available from a tool provider.
    """

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict)
    output_schema: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
            "output_schema": self.output_schema,
        }


@dataclass
class ToolCallResult:
    """Result of an MCP tool call as returned by FastMCPProtocolClient.

    The broker never inspects it; other ProtocolClient implementations may
    return any JSONValue instead.
    """

    content: list[JSONValue]
    duration_ms: int
    is_error: bool = False
    structured_content: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "content": self.content,
            "is_error": self.is_error,
            "structured_content": self.structured_content,
            "duration_ms": self.duration_ms,
        }


@runtime_checkable
class ProtocolClient(Protocol):
    """Client for one tool provider connection.

    initialize() is called exactly once, before any other method.
    Implementations may also provide ``async def shutdown()``; the registry
    calls it on removal when present.
    """

    async def initialize(self) -> None: ...

    async def list_tools(self) -> list[ToolDescriptor]: ...

    async def call_tool(self, name: str, arguments: JSONValue) -> Any: ...


ClientFactory: TypeAlias = Callable[[Connection], ProtocolClient]
