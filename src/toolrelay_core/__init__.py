"""toolrelay core - MCP connection registry and tool broker.

Manages connections to MCP tool providers and forwards tool discovery and
tool calls to the right live client.
"""

from toolrelay_core.application import RelayApplication

__version__ = "0.1.0"
__all__ = ["__version__", "RelayApplication"]
