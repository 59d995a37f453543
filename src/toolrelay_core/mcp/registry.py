"""Connection Registry - owns connection configs and live MCP clients."""

import asyncio
import re
import secrets
from typing import Any

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from toolrelay_core.errors import create_error
from toolrelay_core.logging.logger import RelayLogger
from toolrelay_core.types import (
    ConnectionStatus,
    ConnectionType,
    LogLevel,
    ValidationIssue,
    ValidationResult,
)

from .types import ClientFactory, Connection, ConnectionParams, ProtocolClient


def generate_connection_id() -> str:
    """Generate a unique connection ID."""
    return f"conn_{secrets.token_hex(6)}"


def validate_params(params: ConnectionParams) -> ValidationResult:
    """Validate connection parameters before any client is built.

    Returns:
        ValidationResult; invalid when any error was found
    """
    errors: list[ValidationIssue] = []

    if not isinstance(params.name, str) or not params.name.strip():
        errors.append(ValidationIssue(path="name", message="name must be a non-empty string"))

    try:
        connection_type = ConnectionType(params.type)
    except ValueError:
        errors.append(
            ValidationIssue(path="type", message=f"Unsupported connection type: {params.type!r}")
        )
        return ValidationResult(valid=False, errors=errors)

    if connection_type == ConnectionType.HTTP:
        if not is_valid_url(params.url):
            errors.append(
                ValidationIssue(path="url", message=f"url must be a valid http(s) URL: {params.url!r}")
            )
    else:
        if not isinstance(params.command, str) or not params.command.strip():
            errors.append(ValidationIssue(path="command", message="command must be a non-empty string"))
        if not all(isinstance(arg, str) for arg in params.args):
            errors.append(ValidationIssue(path="args", message="args must all be strings"))
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in params.env.items()):
            errors.append(ValidationIssue(path="env", message="env keys and values must be strings"))

    return ValidationResult(valid=True, errors=errors)


_HTTP_URL = TypeAdapter(AnyHttpUrl)

# Characters never legal unencoded in a URI (RFC 3986)
_ILLEGAL_URL_CHARS = re.compile(r"[\s<>\"{}|\\^`\x00-\x1f\x7f]")


def is_valid_url(url: str | None) -> bool:
    """Check for an absolute http(s) URL with a host."""
    if not isinstance(url, str) or not url or _ILLEGAL_URL_CHARS.search(url):
        return False
    try:
        _HTTP_URL.validate_python(url)
    except ValidationError:
        return False
    return True


class ConnectionRegistry:
    """Registry of MCP connections and their live clients.

    Holds two maps keyed by connection id: the configuration map and the
    live-client map. A single asyncio lock guards both; it is never held
    while awaiting a client.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        logger: RelayLogger | None = None,
    ):
        """Initialize connection registry.

        Args:
            client_factory: Builds a ProtocolClient for a Connection
            logger: Optional logger
        """
        self._client_factory = client_factory
        self._logger = logger
        self._connections: dict[str, Connection] = {}
        self._clients: dict[str, ProtocolClient] = {}
        # Ids handed out but not yet committed, so concurrent adds never collide
        self._pending_ids: set[str] = set()
        self._lock = asyncio.Lock()

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, "registry", message, kwargs or None)

    async def _reserve_id(self) -> str:
        async with self._lock:
            connection_id = generate_connection_id()
            while (
                connection_id in self._connections
                or connection_id in self._pending_ids
            ):
                connection_id = generate_connection_id()
            self._pending_ids.add(connection_id)
            return connection_id

    async def add_connection(self, params: ConnectionParams) -> Connection:
        """Create a connection, initialize its client and register both.

        Either both maps gain the new id or neither does.

        Args:
            params: Connection parameters without id

        Returns:
            The registered Connection

        Raises:
            RelayError(VALIDATION_FAILED): If params are invalid
            RelayError(CONNECTION_INIT_FAILED): If the client fails to initialize
        """
        validation = validate_params(params)
        if not validation.valid:
            raise create_error(
                "VALIDATION_FAILED",
                detail=validation.summary(),
                connection_name=params.name or None,
            )

        connection_id = await self._reserve_id()
        connection = Connection.from_params(connection_id, params)

        conn_log = self._logger.connection(connection.id, connection.name) if self._logger else None
        if conn_log:
            conn_log.adding(connection.type.value)

        client: ProtocolClient | None = None
        try:
            client = self._client_factory(connection)
            await client.initialize()
        except Exception as e:
            async with self._lock:
                self._pending_ids.discard(connection_id)
            if conn_log:
                conn_log.add_failed(e)
            if client is not None:
                await self._shutdown_client(connection_id, client)
            raise create_error(
                "CONNECTION_INIT_FAILED",
                connection_id=connection.id,
                connection_name=connection.name,
                detail=f"Failed to initialize MCP connection: {e}",
            ) from e
        except BaseException:
            # Cancelled mid-handshake: release the id and the half-open client
            self._pending_ids.discard(connection_id)
            if client is not None:
                await self._shutdown_client(connection_id, client)
            raise

        async with self._lock:
            self._pending_ids.discard(connection_id)
            self._connections[connection_id] = connection
            self._clients[connection_id] = client

        if conn_log:
            conn_log.added()
        return connection

    def list_connections(self) -> list[Connection]:
        """List all configured connections (snapshot)."""
        return list(self._connections.values())

    def get_connection(self, connection_id: str) -> Connection | None:
        """Get connection by id."""
        return self._connections.get(connection_id)

    async def get_client(self, connection_id: str) -> ProtocolClient | None:
        """Look up the live client for a connection.

        Returns:
            ProtocolClient if the connection is active, None otherwise
        """
        async with self._lock:
            return self._clients.get(connection_id)

    async def remove_connection(self, connection_id: str) -> bool:
        """Remove a connection and shut down its client.

        The configuration entry is removed even when no live client exists.

        Returns:
            True if a configuration entry existed and was removed
        """
        self._log(LogLevel.INFO, f"Removing MCP connection: {connection_id}")

        async with self._lock:
            client = self._clients.pop(connection_id, None)
            connection = self._connections.pop(connection_id, None)

        if client is not None:
            await self._shutdown_client(connection_id, client)

        if self._logger:
            name = connection.name if connection else None
            self._logger.connection(connection_id, name).removed(
                had_client=client is not None,
                had_config=connection is not None,
            )

        return connection is not None

    async def close_all(self, timeout: float = 10.0) -> None:
        """Remove every connection and shut down all clients.

        Args:
            timeout: Maximum time to wait for all shutdowns in seconds
        """
        async with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()
            self._connections.clear()

        if not clients:
            return

        self._log(LogLevel.INFO, f"Shutting down {len(clients)} MCP connections")
        try:
            await asyncio.wait_for(
                asyncio.gather(*(self._shutdown_client(cid, c) for cid, c in clients)),
                timeout=timeout,
            )
        except TimeoutError:
            self._log(LogLevel.WARN, f"Timeout ({timeout}s) waiting for MCP clients to shut down")

    def get_status(self) -> dict[str, ConnectionStatus]:
        """Get live status of every configured connection."""
        return {
            connection_id: (
                ConnectionStatus.CONNECTED
                if connection_id in self._clients
                else ConnectionStatus.DISCONNECTED
            )
            for connection_id in self._connections
        }

    async def _shutdown_client(self, connection_id: str, client: ProtocolClient) -> None:
        """Call the client's shutdown hook if it has one; failures are logged."""
        shutdown = getattr(client, "shutdown", None)
        if shutdown is None:
            self._log(
                LogLevel.DEBUG,
                f"MCP client for {connection_id} has no shutdown hook",
            )
            return
        try:
            await shutdown()
        except Exception as e:
            self._log(LogLevel.WARN, f"Error shutting down MCP client {connection_id}: {e}")


__all__ = [
    "ConnectionRegistry",
    "generate_connection_id",
    "is_valid_url",
    "validate_params",
]
