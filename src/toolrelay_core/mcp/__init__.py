"""MCP connection registry and tool broker."""

from .broker import ToolBroker
from .client import FastMCPProtocolClient, create_client_factory
from .registry import ConnectionRegistry, generate_connection_id, is_valid_url, validate_params
from .types import (
    ClientFactory,
    Connection,
    ConnectionParams,
    JSONValue,
    ProtocolClient,
    ToolCallResult,
    ToolDescriptor,
)

__all__ = [
    # Registry
    "ConnectionRegistry",
    "generate_connection_id",
    "is_valid_url",
    "validate_params",
    # Broker
    "ToolBroker",
    # Client
    "FastMCPProtocolClient",
    "create_client_factory",
    # Types
    "ClientFactory",
    "Connection",
    "ConnectionParams",
    "JSONValue",
    "ProtocolClient",
    "ToolCallResult",
    "ToolDescriptor",
]
