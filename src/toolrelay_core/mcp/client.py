"""MCP protocol client - speaks to one tool provider.

Uses the FastMCP client library for the protocol itself: handshake,
tool discovery and tool calls over streamable HTTP, SSE or stdio.
"""

import asyncio
import time
from contextlib import AsyncExitStack
from typing import Any

from fastmcp.client import Client
from fastmcp.client.transports import (
    ClientTransport,
    SSETransport,
    StdioTransport,
    StreamableHttpTransport,
)
from mcp.types import Tool

from toolrelay_core.config.models import ClientConfig
from toolrelay_core.logging.logger import RelayLogger
from toolrelay_core.types import ConnectionType, LogLevel

from .types import Connection, JSONValue, ToolCallResult, ToolDescriptor


class FastMCPProtocolClient:
    """ProtocolClient backed by a FastMCP Client.

    The FastMCP client context is entered in initialize() and kept open
    until shutdown().
    """

    def __init__(
        self,
        connection: Connection,
        config: ClientConfig | None = None,
        logger: RelayLogger | None = None,
    ):
        """Initialize protocol client.

        Args:
            connection: Connection to open
            config: Client settings (timeout, client name)
            logger: Optional logger
        """
        self.connection = connection
        self.config = config or ClientConfig()
        self._logger = logger
        self._client: Client | None = None
        self._exit_stack: AsyncExitStack | None = None
        self._initialized = False

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, f"client.{self.connection.name}", message, kwargs or None)

    @property
    def connected(self) -> bool:
        """Whether the transport is open."""
        return self._client is not None

    async def initialize(self) -> None:
        """Open the transport and perform the MCP handshake.

        Raises:
            RuntimeError: If called more than once
            Exception: Whatever the transport raises on failure
        """
        if self._initialized:
            raise RuntimeError(f"Client for connection '{self.connection.id}' already initialized")
        self._initialized = True

        self._log(LogLevel.INFO, f"Connecting to MCP server (transport={self.connection.type.value})")

        exit_stack = AsyncExitStack()
        try:
            client = Client(
                transport=self._create_transport(),
                timeout=self.config.timeout,
                name=f"{self.config.client_name}-{self.connection.name}",
            )
            await exit_stack.enter_async_context(client)
        except BaseException:
            await exit_stack.aclose()
            raise

        self._client = client
        self._exit_stack = exit_stack
        self._log(LogLevel.INFO, "Connected successfully")

    def _create_transport(self) -> ClientTransport:
        """Build the FastMCP transport for this connection.

        Raises:
            ValueError: If the connection is missing its url or command
        """
        if self.connection.type == ConnectionType.STDIO:
            if not self.connection.command:
                raise ValueError(f"No command specified for stdio connection '{self.connection.name}'")
            return StdioTransport(
                command=self.connection.command,
                args=list(self.connection.args),
                env=dict(self.connection.env) or None,
            )

        if not self.connection.url:
            raise ValueError(f"No URL specified for HTTP connection '{self.connection.name}'")
        url = self.connection.url.rstrip("/")
        if url.endswith("/sse"):
            return SSETransport(url=url)
        return StreamableHttpTransport(url=url)

    def _require_client(self) -> Client:
        if self._client is None:
            raise RuntimeError(f"MCP client not initialized for '{self.connection.id}'")
        return self._client

    async def list_tools(self) -> list[ToolDescriptor]:
        """Fetch the tool list from the provider."""
        client = self._require_client()
        tools: list[Tool] = await client.list_tools()

        descriptors = [_to_descriptor(tool) for tool in tools]
        self._log(LogLevel.DEBUG, f"Fetched {len(descriptors)} tools")
        return descriptors

    async def call_tool(self, name: str, arguments: JSONValue) -> ToolCallResult:
        """Call a tool on the provider.

        Args:
            name: Tool name, opaque to the relay
            arguments: Tool arguments, passed through as-is

        Returns:
            ToolCallResult with JSON-ready content
        """
        client = self._require_client()
        if arguments is None:
            arguments = {}

        start_time = time.time()
        result = await client.call_tool(name, arguments)
        duration_ms = int((time.time() - start_time) * 1000)

        is_error = bool(getattr(result, "is_error", getattr(result, "isError", False)))
        structured = getattr(
            result, "structured_content", getattr(result, "structuredContent", None)
        )

        return ToolCallResult(
            content=[_dump_content(item) for item in getattr(result, "content", None) or []],
            duration_ms=duration_ms,
            is_error=is_error,
            structured_content=structured,
        )

    async def shutdown(self) -> None:
        """Close the transport. Safe to call more than once."""
        if self._exit_stack is None:
            return

        self._log(LogLevel.INFO, "Disconnecting from MCP server")
        exit_stack, self._exit_stack = self._exit_stack, None
        self._client = None
        try:
            await asyncio.wait_for(exit_stack.aclose(), timeout=self.config.shutdown_timeout)
        except TimeoutError:
            self._log(
                LogLevel.WARN,
                f"Timeout ({self.config.shutdown_timeout}s) during disconnect, forcing close",
            )
        self._log(LogLevel.INFO, "Disconnected")


_MISSING = object()


def _first_attr(tool: Any, *names: str) -> Any:
    # Newer fastmcp tool objects use snake_case and warn on the camelCase aliases
    for name in names:
        value = getattr(tool, name, _MISSING)
        if value is not _MISSING:
            return value
    return None


def _to_descriptor(tool: Tool) -> ToolDescriptor:
    return ToolDescriptor(
        name=tool.name,
        description=tool.description or "",
        input_schema=_first_attr(tool, "input_schema", "parameters", "inputSchema") or {},
        output_schema=_first_attr(tool, "output_schema", "outputSchema"),
    )


def _dump_content(item: Any) -> JSONValue:
    """Convert one MCP content block (TextContent, ImageContent, ...) to plain data."""
    if hasattr(item, "model_dump"):
        return item.model_dump(mode="json", exclude_none=True)
    if isinstance(item, (dict, str, int, float, bool)) or item is None:
        return item
    return str(item)


def create_client_factory(
    config: ClientConfig | None = None,
    logger: RelayLogger | None = None,
):
    """Return a ClientFactory that builds FastMCPProtocolClients with shared settings."""

    def factory(connection: Connection) -> FastMCPProtocolClient:
        return FastMCPProtocolClient(connection, config=config, logger=logger)

    return factory
