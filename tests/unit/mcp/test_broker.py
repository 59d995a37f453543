"""Unit tests for ToolBroker."""

import asyncio

import pytest

from tests.mocks import FakeClientFactory
from toolrelay_core.errors import ErrorCategory, RelayError
from toolrelay_core.logging import ToolLogger
from toolrelay_core.mcp import Connection, ConnectionRegistry, ToolBroker, ToolDescriptor
from toolrelay_core.types import ConnectionType


class TestListTools:
    """list_tools routing and failures."""

    @pytest.mark.asyncio
    async def test_returns_client_tools(self, registry, broker, http_params):
        connection = await registry.add_connection(http_params)

        tools = await broker.list_tools(connection.id)

        assert tools == [ToolDescriptor(name="search_web")]

    @pytest.mark.asyncio
    async def test_unknown_connection(self, broker):
        with pytest.raises(RelayError) as exc_info:
            await broker.list_tools("conn_unknown")

        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"
        assert exc_info.value.category == ErrorCategory.CONNECTION
        assert exc_info.value.connection_id == "conn_unknown"
        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_removed_connection(self, registry, broker, http_params):
        connection = await registry.add_connection(http_params)
        await registry.remove_connection(connection.id)

        with pytest.raises(RelayError) as exc_info:
            await broker.list_tools(connection.id)

        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"

    @pytest.mark.asyncio
    async def test_config_without_client(self, registry, broker):
        registry._connections["conn_dangling"] = Connection(
            id="conn_dangling", name="orphan", type=ConnectionType.HTTP, url="https://x.io"
        )

        with pytest.raises(RelayError) as exc_info:
            await broker.list_tools("conn_dangling")

        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"

    @pytest.mark.asyncio
    async def test_client_error_propagates_unchanged(self, logger, log_output, http_params):
        original = ConnectionResetError("provider went away")
        registry = ConnectionRegistry(FakeClientFactory(list_error=original), logger=logger)
        broker = ToolBroker(registry, logger=logger)
        connection = await registry.add_connection(http_params)

        with pytest.raises(ConnectionResetError) as exc_info:
            await broker.list_tools(connection.id)

        assert exc_info.value is original
        assert "Error listing tools" in log_output.getvalue()

    @pytest.mark.asyncio
    async def test_tool_logger_scoped_to_connection(self, registry, broker, http_params):
        connection = await registry.add_connection(http_params)

        tool_log = broker._tool_log(connection.id)

        assert isinstance(tool_log, ToolLogger)
        assert tool_log.parent.connection_id == connection.id
        assert tool_log.parent.name == "search"
        assert ToolBroker(registry)._tool_log(connection.id) is None


class TestCallTool:
    """call_tool routing and failures."""

    @pytest.mark.asyncio
    async def test_passes_params_and_returns_result_unmodified(
        self, registry, broker, client_factory, http_params
    ):
        connection = await registry.add_connection(http_params)
        params = {"query": "cats", "nested": {"limit": [1, 2, None]}}

        result = await broker.call_tool(connection.id, "search_web", params)

        assert result == {"hits": 3}
        assert result is client_factory.client_for(connection.id).call_result
        assert client_factory.client_for(connection.id).calls == [("search_web", params)]

    @pytest.mark.asyncio
    async def test_unknown_connection(self, broker):
        with pytest.raises(RelayError) as exc_info:
            await broker.call_tool("conn_unknown", "search_web", {})

        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"
        assert exc_info.value.tool_name == "search_web"

    @pytest.mark.asyncio
    async def test_removed_connection(self, registry, broker, http_params):
        connection = await registry.add_connection(http_params)
        await registry.remove_connection(connection.id)

        with pytest.raises(RelayError) as exc_info:
            await broker.call_tool(connection.id, "search_web", {"query": "cats"})

        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"

    @pytest.mark.asyncio
    async def test_client_error_propagates_unchanged(self, logger, http_params):
        original = ValueError("unknown tool")
        registry = ConnectionRegistry(FakeClientFactory(call_error=original), logger=logger)
        broker = ToolBroker(registry, logger=logger)
        connection = await registry.add_connection(http_params)

        with pytest.raises(ValueError) as exc_info:
            await broker.call_tool(connection.id, "nope", None)

        assert exc_info.value is original

    @pytest.mark.asyncio
    async def test_parallel_calls_on_one_connection(self, logger, http_params):
        gate = asyncio.Event()
        factory = FakeClientFactory(call_result="ok", call_gate=gate)
        registry = ConnectionRegistry(factory, logger=logger)
        broker = ToolBroker(registry, logger=logger)
        connection = await registry.add_connection(http_params)

        tasks = [
            asyncio.create_task(broker.call_tool(connection.id, "search_web", {"i": i}))
            for i in range(3)
        ]
        await asyncio.sleep(0.01)

        # All three are in flight at once
        assert len(factory.client_for(connection.id).calls) == 3
        gate.set()
        assert await asyncio.gather(*tasks) == ["ok", "ok", "ok"]

    @pytest.mark.asyncio
    async def test_registry_not_locked_during_call(self, logger, http_params):
        gate = asyncio.Event()
        factory = FakeClientFactory(call_gate=gate)
        registry = ConnectionRegistry(factory, logger=logger)
        broker = ToolBroker(registry, logger=logger)
        connection = await registry.add_connection(http_params)

        call = asyncio.create_task(broker.call_tool(connection.id, "search_web", {}))
        await asyncio.sleep(0.01)

        removed = await asyncio.wait_for(registry.remove_connection(connection.id), timeout=0.5)
        assert removed is True

        gate.set()
        await call


class TestScenario:
    """End-to-end: add, list, call, remove."""

    @pytest.mark.asyncio
    async def test_search_connection_lifecycle(self, registry, broker, http_params):
        connection = await registry.add_connection(http_params)

        assert await broker.list_tools(connection.id) == [ToolDescriptor(name="search_web")]
        assert await broker.call_tool(connection.id, "search_web", {"query": "cats"}) == {"hits": 3}
        assert await registry.remove_connection(connection.id) is True

        with pytest.raises(RelayError) as exc_info:
            await broker.list_tools(connection.id)
        assert exc_info.value.code == "CONNECTION_NOT_ACTIVE"
