"""Unit tests for FastMCPProtocolClient (FastMCP Client mocked)."""

import warnings
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastmcp.client.transports import SSETransport, StdioTransport, StreamableHttpTransport
from mcp.types import Tool

from toolrelay_core.config import ClientConfig
from toolrelay_core.mcp import (
    Connection,
    FastMCPProtocolClient,
    ProtocolClient,
    ToolCallResult,
    ToolDescriptor,
    create_client_factory,
)
from toolrelay_core.types import ConnectionType


def _http(url: str = "https://example.com/mcp") -> Connection:
    return Connection(id="conn_abc", name="search", type=ConnectionType.HTTP, url=url)


def _stdio() -> Connection:
    return Connection(
        id="conn_def",
        name="fs",
        type=ConnectionType.STDIO,
        command="uvx",
        args=["mcp-server-fetch"],
        env={"TOKEN": "x"},
    )


@pytest.fixture
def mock_fastmcp():
    """Patch the FastMCP Client class used by FastMCPProtocolClient."""
    with patch("toolrelay_core.mcp.client.Client") as client_cls:
        client = MagicMock()
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        client_cls.return_value = client
        yield client_cls, client


class TestTransportSelection:
    """_create_transport picks the FastMCP transport by connection type."""

    def test_http_uses_streamable_http(self):
        transport = FastMCPProtocolClient(_http())._create_transport()
        assert isinstance(transport, StreamableHttpTransport)

    def test_sse_url_uses_sse(self):
        transport = FastMCPProtocolClient(_http("http://localhost:8000/sse/"))._create_transport()
        assert isinstance(transport, SSETransport)

    def test_stdio_uses_stdio_transport(self):
        transport = FastMCPProtocolClient(_stdio())._create_transport()
        assert isinstance(transport, StdioTransport)

    def test_stdio_without_command(self):
        connection = Connection(id="conn_x", name="fs", type=ConnectionType.STDIO)
        with pytest.raises(ValueError, match="No command"):
            FastMCPProtocolClient(connection)._create_transport()


class TestLifecycle:
    """initialize / shutdown."""

    def test_satisfies_protocol(self):
        assert isinstance(FastMCPProtocolClient(_http()), ProtocolClient)

    @pytest.mark.asyncio
    async def test_initialize_enters_client(self, mock_fastmcp):
        client_cls, client = mock_fastmcp
        protocol_client = FastMCPProtocolClient(_http(), config=ClientConfig(timeout=12))

        await protocol_client.initialize()

        assert protocol_client.connected
        client.__aenter__.assert_awaited_once()
        assert client_cls.call_args.kwargs["timeout"] == 12
        assert client_cls.call_args.kwargs["name"] == "toolrelay-search"

    @pytest.mark.asyncio
    async def test_initialize_twice_rejected(self, mock_fastmcp):
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        with pytest.raises(RuntimeError, match="already initialized"):
            await protocol_client.initialize()

    @pytest.mark.asyncio
    async def test_initialize_failure_propagates(self, mock_fastmcp):
        _, client = mock_fastmcp
        client.__aenter__.side_effect = ConnectionRefusedError("refused")
        protocol_client = FastMCPProtocolClient(_http())

        with pytest.raises(ConnectionRefusedError):
            await protocol_client.initialize()

        assert not protocol_client.connected

    @pytest.mark.asyncio
    async def test_shutdown_exits_client(self, mock_fastmcp):
        _, client = mock_fastmcp
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        await protocol_client.shutdown()
        await protocol_client.shutdown()

        client.__aexit__.assert_awaited_once()
        assert not protocol_client.connected

    @pytest.mark.asyncio
    async def test_calls_before_initialize_fail(self):
        protocol_client = FastMCPProtocolClient(_http())
        with pytest.raises(RuntimeError, match="not initialized"):
            await protocol_client.list_tools()


class TestToolTraffic:
    """list_tools / call_tool conversion."""

    @pytest.mark.asyncio
    async def test_list_tools_converts_descriptors(self, mock_fastmcp):
        _, client = mock_fastmcp
        client.list_tools = AsyncMock(
            return_value=[
                SimpleNamespace(
                    name="search_web",
                    description="Search the web",
                    inputSchema={"type": "object"},
                    outputSchema=None,
                ),
                SimpleNamespace(name="noop", description=None, inputSchema=None),
                Tool(name="fetch", inputSchema={"type": "object", "properties": {"url": {"type": "string"}}}),
            ]
        )
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        tools = await protocol_client.list_tools()

        assert tools == [
            ToolDescriptor(name="search_web", description="Search the web", input_schema={"type": "object"}),
            ToolDescriptor(name="noop"),
            ToolDescriptor(
                name="fetch",
                input_schema={"type": "object", "properties": {"url": {"type": "string"}}},
            ),
        ]

    @pytest.mark.asyncio
    async def test_list_tools_prefers_snake_case_schemas(self, mock_fastmcp):
        class SnakeCaseTool:
            name = "search_web"
            description = "Search the web"
            input_schema = {"type": "object"}
            output_schema = {"type": "array"}

            @property
            def inputSchema(self):
                warnings.warn("use input_schema", DeprecationWarning, stacklevel=2)
                return self.input_schema

            @property
            def outputSchema(self):
                warnings.warn("use output_schema", DeprecationWarning, stacklevel=2)
                return self.output_schema

        _, client = mock_fastmcp
        client.list_tools = AsyncMock(return_value=[SnakeCaseTool()])
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            tools = await protocol_client.list_tools()

        assert tools == [
            ToolDescriptor(
                name="search_web",
                description="Search the web",
                input_schema={"type": "object"},
                output_schema={"type": "array"},
            )
        ]

    @pytest.mark.asyncio
    async def test_call_tool_dumps_content(self, mock_fastmcp):
        _, client = mock_fastmcp
        text_block = MagicMock()
        text_block.model_dump.return_value = {"type": "text", "text": "3 cats found"}
        client.call_tool = AsyncMock(
            return_value=SimpleNamespace(
                content=[text_block],
                is_error=False,
                structured_content={"count": 3},
            )
        )
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        result = await protocol_client.call_tool("search_web", {"query": "cats"})

        client.call_tool.assert_awaited_once_with("search_web", {"query": "cats"})
        assert isinstance(result, ToolCallResult)
        assert result.content == [{"type": "text", "text": "3 cats found"}]
        assert result.structured_content == {"count": 3}
        assert result.is_error is False
        assert result.to_dict()["content"] == result.content

    @pytest.mark.asyncio
    async def test_call_tool_none_params_become_empty(self, mock_fastmcp):
        _, client = mock_fastmcp
        client.call_tool = AsyncMock(return_value=SimpleNamespace(content=[], isError=True))
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        result = await protocol_client.call_tool("ping", None)

        client.call_tool.assert_awaited_once_with("ping", {})
        assert result.is_error is True

    @pytest.mark.asyncio
    async def test_call_tool_error_propagates(self, mock_fastmcp):
        _, client = mock_fastmcp
        client.call_tool = AsyncMock(side_effect=TimeoutError())
        protocol_client = FastMCPProtocolClient(_http())
        await protocol_client.initialize()

        with pytest.raises(TimeoutError):
            await protocol_client.call_tool("slow", {})


def test_client_factory_builds_clients():
    config = ClientConfig(timeout=5)
    factory = create_client_factory(config)

    client = factory(_http())

    assert isinstance(client, FastMCPProtocolClient)
    assert client.config is config
    assert client.connection.id == "conn_abc"
