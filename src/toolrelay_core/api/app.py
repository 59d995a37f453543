"""REST API application factory."""

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolrelay_core.api.config import RESTConfig
from toolrelay_core.api.errors import setup_error_handlers
from toolrelay_core.api.middleware import APIKeyAuthMiddleware, RequestIDMiddleware
from toolrelay_core.api.routers import connection_router, health_router

if TYPE_CHECKING:
    from toolrelay_core.errors import ErrorFactory
    from toolrelay_core.logging import RelayLogger
    from toolrelay_core.mcp import ConnectionRegistry, ToolBroker


def create_rest_app(
    connection_registry: "ConnectionRegistry",
    tool_broker: "ToolBroker",
    config: RESTConfig | None = None,
    logger: "RelayLogger | None" = None,
    error_factory: "ErrorFactory | None" = None,
) -> FastAPI:
    """Create FastAPI application with all routes.

    Args:
        connection_registry: Registry owning connections and live clients
        tool_broker: Broker for list/call requests
        config: REST API configuration
        logger: Optional relay logger
        error_factory: Optional factory for translating provider errors

    Returns:
        Configured FastAPI application
    """
    config = config or RESTConfig()

    app = FastAPI(
        title=config.title,
        version=config.version,
        docs_url=config.docs_path if config.docs_enabled else None,
        redoc_url=None,
        openapi_url=config.openapi_path if config.docs_enabled else None,
    )

    app.state.connection_registry = connection_registry
    app.state.tool_broker = tool_broker
    app.state.config = config
    app.state.logger = logger
    app.state.error_factory = error_factory

    # First added is innermost
    if config.require_auth:
        app.add_middleware(
            APIKeyAuthMiddleware,
            api_keys=config.api_keys,
            exclude_paths=[f"{config.prefix}/health", config.docs_path, config.openapi_path],
        )

    if config.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(RequestIDMiddleware)

    setup_error_handlers(app)

    app.include_router(health_router, prefix=config.prefix)
    app.include_router(connection_router, prefix=config.prefix)

    return app
