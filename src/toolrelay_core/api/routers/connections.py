"""Connection and tool router."""

import time

from fastapi import APIRouter, Body, HTTPException, Path, Request

from toolrelay_core.api.auth import ConnectionPermissions, auth_hook
from toolrelay_core.api.models import (
    ConnectionDeleteResponse,
    ConnectionListResponse,
    ConnectionResponse,
    ErrorResponse,
    HttpConnectionCreateRequest,
    StdioConnectionCreateRequest,
    ToolCallRequest,
    ToolCallResponse,
    ToolInfo,
    ToolListResponse,
)
from toolrelay_core.errors import ErrorFactory, RelayError, create_error, get_error_factory
from toolrelay_core.mcp import Connection, ConnectionParams, ConnectionRegistry, ToolBroker
from toolrelay_core.types import ConnectionType

connection_router = APIRouter(
    prefix="/connections",
    tags=["Connections"],
    responses={
        status: {"model": ErrorResponse}
        for status in (400, 401, 403, 404, 422, 501, 502, 503, 504)
    },
)


def _get_registry(request: Request) -> ConnectionRegistry:
    """Get connection registry from app state."""
    registry = getattr(request.app.state, "connection_registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Connection registry not available")
    return registry


def _get_broker(request: Request) -> ToolBroker:
    """Get tool broker from app state."""
    broker = getattr(request.app.state, "tool_broker", None)
    if broker is None:
        raise HTTPException(status_code=503, detail="Tool broker not available")
    return broker


def _get_error_factory(request: Request) -> ErrorFactory:
    return getattr(request.app.state, "error_factory", None) or get_error_factory()


def _allow_subprocess(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(getattr(config, "allow_subprocess", True))


def _to_response(connection: Connection) -> ConnectionResponse:
    return ConnectionResponse(**connection.to_dict())


@connection_router.post("/http", response_model=ConnectionResponse)
async def add_http_connection(
    request: Request,
    create_request: HttpConnectionCreateRequest,
) -> ConnectionResponse:
    """Create a network connection to an MCP server."""
    await auth_hook.check_permission(request, ConnectionPermissions.CREATE)

    connection = await _get_registry(request).add_connection(
        ConnectionParams(
            name=create_request.name,
            type=ConnectionType.HTTP,
            url=create_request.url,
        )
    )
    return _to_response(connection)


@connection_router.post("/stdio", response_model=ConnectionResponse)
async def add_stdio_connection(
    request: Request,
    create_request: StdioConnectionCreateRequest,
) -> ConnectionResponse:
    """Create a subprocess connection to an MCP server.

    Only available where the relay is allowed to spawn processes.
    """
    await auth_hook.check_permission(request, ConnectionPermissions.CREATE)

    if not _allow_subprocess(request):
        raise create_error("SUBPROCESS_NOT_SUPPORTED", connection_name=create_request.name)

    connection = await _get_registry(request).add_connection(
        ConnectionParams(
            name=create_request.name,
            type=ConnectionType.STDIO,
            command=create_request.command,
            args=create_request.args,
            env=create_request.env,
        )
    )
    return _to_response(connection)


@connection_router.get("", response_model=ConnectionListResponse)
async def list_connections(request: Request) -> ConnectionListResponse:
    """List all connections."""
    await auth_hook.check_permission(request, ConnectionPermissions.LIST)

    connections = [_to_response(c) for c in _get_registry(request).list_connections()]
    return ConnectionListResponse(connections=connections, total=len(connections))


@connection_router.get("/{connection_id}", response_model=ConnectionResponse)
async def get_connection(
    request: Request,
    connection_id: str = Path(..., description="Connection ID"),
) -> ConnectionResponse:
    """Get a single connection."""
    await auth_hook.check_permission(request, ConnectionPermissions.READ)

    connection = _get_registry(request).get_connection(connection_id)
    if not connection:
        raise HTTPException(status_code=404, detail=f"Connection '{connection_id}' not found")
    return _to_response(connection)


@connection_router.delete("/{connection_id}", response_model=ConnectionDeleteResponse)
async def remove_connection(
    request: Request,
    connection_id: str = Path(..., description="Connection ID"),
) -> ConnectionDeleteResponse:
    """Remove a connection. `removed` is false when the id was unknown."""
    await auth_hook.check_permission(request, ConnectionPermissions.DELETE)

    removed = await _get_registry(request).remove_connection(connection_id)
    return ConnectionDeleteResponse(id=connection_id, removed=removed)


@connection_router.get("/{connection_id}/tools", response_model=ToolListResponse)
async def list_tools(
    request: Request,
    connection_id: str = Path(..., description="Connection ID"),
) -> ToolListResponse:
    """List the tools a connection exposes."""
    await auth_hook.check_permission(request, ConnectionPermissions.LIST_TOOLS)

    try:
        tools = await _get_broker(request).list_tools(connection_id)
    except RelayError:
        raise
    except Exception as e:
        raise _get_error_factory(request).from_exception(e, connection_id=connection_id) from e

    infos = [ToolInfo(**tool.to_dict()) for tool in tools]
    return ToolListResponse(connection_id=connection_id, tools=infos, total=len(infos))


@connection_router.post("/{connection_id}/tools/{tool_name}/call", response_model=ToolCallResponse)
async def call_tool(
    request: Request,
    connection_id: str = Path(..., description="Connection ID"),
    tool_name: str = Path(..., description="Tool name"),
    call_request: ToolCallRequest | None = Body(default=None),
) -> ToolCallResponse:
    """Call a tool on a connection."""
    await auth_hook.check_permission(request, ConnectionPermissions.CALL_TOOL)

    params = call_request.params if call_request else None

    start_time = time.time()
    try:
        result = await _get_broker(request).call_tool(connection_id, tool_name, params)
    except RelayError:
        raise
    except Exception as e:
        raise _get_error_factory(request).from_exception(
            e, connection_id=connection_id, tool_name=tool_name
        ) from e
    duration_ms = int((time.time() - start_time) * 1000)

    if hasattr(result, "to_dict"):
        result = result.to_dict()

    return ToolCallResponse(
        connection_id=connection_id,
        tool_name=tool_name,
        duration_ms=duration_ms,
        result=result,
    )
