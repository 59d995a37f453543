"""Relay Application - wires config, logging, registry, broker and REST API.

The registry is constructed once here and injected into the REST surface;
shutdown() tears down every live MCP client.
"""

import sys
from typing import Any, TextIO

from fastapi import FastAPI

from toolrelay_core.api import RESTConfig, create_rest_app
from toolrelay_core.config import ConfigLoader, RelayConfig
from toolrelay_core.errors import ErrorFactory, ErrorRegistry
from toolrelay_core.logging import LogConfig, RelayLogger
from toolrelay_core.mcp import ClientFactory, ConnectionRegistry, ToolBroker, create_client_factory
from toolrelay_core.types import LogLevel


class RelayApplication:
    """
    Relay application orchestrator.

    Initialization sequence:

    1. Config loading
    2. Logger setup
    3. Error registry and factory
    4. Connection registry (with the FastMCP client factory)
    5. Tool broker
    6. REST app
    """

    def __init__(
        self,
        config_path: str | None = None,
        config: RelayConfig | None = None,
        config_overrides: dict[str, Any] | None = None,
        log_output: TextIO | None = None,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize application.

        Args:
            config_path: Path to config file (optional)
            config: Preloaded configuration, skips file loading
            config_overrides: Nested values applied over the config file
            log_output: Output stream for logs (default: sys.stdout)
            client_factory: Override for the MCP client factory (tests)
        """
        self._config_path = config_path
        self._config_overrides = config_overrides
        self._log_output = log_output or sys.stdout
        self._client_factory = client_factory
        self._initialized = False

        self.config: RelayConfig | None = config
        self.logger: RelayLogger | None = None
        self.error_registry: ErrorRegistry | None = None
        self.error_factory: ErrorFactory | None = None
        self.connection_registry: ConnectionRegistry | None = None
        self.tool_broker: ToolBroker | None = None
        self.rest_app: FastAPI | None = None

    @property
    def initialized(self) -> bool:
        """Whether initialize() has completed."""
        return self._initialized

    async def initialize(self) -> None:
        """Initialize all components."""
        if self._initialized:
            return

        # 1. Config
        if self.config is None:
            self.config = ConfigLoader().load(self._config_path, overrides=self._config_overrides)

        # 2. Logger
        logging_config = self.config.logging
        self.logger = RelayLogger(
            LogConfig(
                level=logging_config.level,
                format=logging_config.format,
                show_params=logging_config.options.show_params,
                show_results=logging_config.options.show_results,
                truncate_at=logging_config.options.truncate_at,
                components={
                    "registry": logging_config.components.registry,
                    "broker": logging_config.components.broker,
                    "client": logging_config.components.client,
                    "api": logging_config.components.api,
                    "config": logging_config.components.config,
                },
                output=self._log_output,
            )
        )

        # 3. Errors
        self.error_registry = ErrorRegistry()
        self.error_factory = ErrorFactory(self.error_registry)

        # 4. Connection registry
        client_factory = self._client_factory or create_client_factory(
            self.config.client, logger=self.logger
        )
        self.connection_registry = ConnectionRegistry(client_factory, logger=self.logger)

        # 5. Tool broker
        self.tool_broker = ToolBroker(self.connection_registry, logger=self.logger)

        # 6. REST app
        self.rest_app = create_rest_app(
            connection_registry=self.connection_registry,
            tool_broker=self.tool_broker,
            config=RESTConfig.from_api_config(self.config.api),
            logger=self.logger,
            error_factory=self.error_factory,
        )

        self._initialized = True
        self.logger._log(LogLevel.INFO, "api", "Relay initialized")

    async def shutdown(self) -> None:
        """Shut down all MCP clients."""
        if not self._initialized:
            return

        if self.connection_registry:
            await self.connection_registry.close_all()

        self._initialized = False

    async def serve(self) -> None:
        """Initialize (if needed) and serve the REST API with uvicorn."""
        import uvicorn

        if not self._initialized:
            await self.initialize()

        config = uvicorn.Config(
            self.rest_app,
            host=self.config.server.host,
            port=self.config.server.port,
            log_level="info",
        )
        server = uvicorn.Server(config)
        try:
            await server.serve()
        finally:
            await self.shutdown()
