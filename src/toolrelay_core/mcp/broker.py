"""Tool Broker - forwards tool discovery and calls to live MCP clients."""

import time
from typing import Any

from toolrelay_core.errors import create_error
from toolrelay_core.logging.logger import RelayLogger, ToolLogger

from .registry import ConnectionRegistry
from .types import JSONValue, ProtocolClient, ToolDescriptor


class ToolBroker:
    """Routes list_tools / call_tool to the client of a connection.

    Reads clients through the registry and never mutates it. Errors raised
    by a client propagate unchanged.
    """

    def __init__(self, registry: ConnectionRegistry, logger: RelayLogger | None = None):
        """Initialize tool broker.

        Args:
            registry: Registry that owns the live clients
            logger: Optional logger
        """
        self._registry = registry
        self._logger = logger

    async def _get_active_client(self, connection_id: str, tool_name: str | None = None) -> ProtocolClient:
        client = await self._registry.get_client(connection_id)
        if client is None:
            raise create_error(
                "CONNECTION_NOT_ACTIVE",
                connection_id=connection_id,
                tool_name=tool_name,
            )
        return client

    def _tool_log(self, connection_id: str) -> ToolLogger | None:
        if not self._logger:
            return None
        connection = self._registry.get_connection(connection_id)
        name = connection.name if connection else None
        return self._logger.connection(connection_id, name).tool()

    async def list_tools(self, connection_id: str) -> list[ToolDescriptor]:
        """List tools exposed by a connection.

        Raises:
            RelayError(CONNECTION_NOT_ACTIVE): If the connection has no live client
        """
        client = await self._get_active_client(connection_id)
        tool_log = self._tool_log(connection_id)
        if tool_log:
            tool_log.listing()

        try:
            tools = await client.list_tools()
        except Exception as e:
            if tool_log:
                tool_log.failed("list_tools", e)
            raise

        if tool_log:
            tool_log.listed(len(tools))
        return tools

    async def call_tool(self, connection_id: str, tool_name: str, params: JSONValue) -> Any:
        """Call a tool on a connection.

        Args:
            connection_id: Target connection
            tool_name: Tool name, meaningful only to the provider
            params: Opaque arguments, passed through uninterpreted

        Returns:
            Whatever the client returns, unmodified

        Raises:
            RelayError(CONNECTION_NOT_ACTIVE): If the connection has no live client
        """
        client = await self._get_active_client(connection_id, tool_name)
        tool_log = self._tool_log(connection_id)
        if tool_log:
            tool_log.calling(tool_name, params)

        start_time = time.time()
        try:
            result = await client.call_tool(tool_name, params)
        except Exception as e:
            if tool_log:
                tool_log.failed("call_tool", e, tool_name=tool_name)
            raise

        if tool_log:
            tool_log.result(tool_name, result, int((time.time() - start_time) * 1000))
        return result
