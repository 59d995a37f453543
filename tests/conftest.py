"""
Pytest configuration and shared fixtures for toolrelay tests.
"""

import io
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tests.mocks import FakeClientFactory  # noqa: E402
from toolrelay_core.logging import LogConfig, RelayLogger  # noqa: E402
from toolrelay_core.mcp import ConnectionParams, ConnectionRegistry, ToolBroker  # noqa: E402
from toolrelay_core.types import ConnectionType, LogFormat, LogLevel  # noqa: E402

# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture
def log_output() -> io.StringIO:
    """Capture log output."""
    return io.StringIO()


@pytest.fixture
def logger(log_output: io.StringIO) -> RelayLogger:
    """JSON logger writing to log_output at DEBUG level."""
    return RelayLogger(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON, output=log_output))


# =============================================================================
# Registry / Broker Fixtures
# =============================================================================


@pytest.fixture
def client_factory() -> FakeClientFactory:
    """Factory producing fake protocol clients with one search tool."""
    return FakeClientFactory(tools=[{"name": "search_web"}], call_result={"hits": 3})


@pytest.fixture
def registry(client_factory: FakeClientFactory, logger: RelayLogger) -> ConnectionRegistry:
    """Connection registry backed by fake clients."""
    return ConnectionRegistry(client_factory, logger=logger)


@pytest.fixture
def broker(registry: ConnectionRegistry, logger: RelayLogger) -> ToolBroker:
    """Tool broker over the registry fixture."""
    return ToolBroker(registry, logger=logger)


@pytest.fixture
def http_params() -> ConnectionParams:
    """Valid network connection parameters."""
    return ConnectionParams(
        name="search",
        type=ConnectionType.HTTP,
        url="https://example.com/mcp",
    )


@pytest.fixture
def stdio_params() -> ConnectionParams:
    """Valid subprocess connection parameters."""
    return ConnectionParams(
        name="filesystem",
        type=ConnectionType.STDIO,
        command="npx",
        args=["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
    )
