"""Relay logger - component logging for connections and tool calls."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from toolrelay_core.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from toolrelay_core.types import LogFormat, LogLevel

DEFAULT_COMPONENTS = ("registry", "broker", "client", "api", "config")


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_params: bool = True
    show_results: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stdout)

    def __post_init__(self) -> None:
        """Initialize default components if not provided."""
        if not self.components:
            self.components = {name: True for name in DEFAULT_COMPONENTS}


class RelayLogger:
    """Main logger facade. Creates scoped loggers for connections."""

    def __init__(self, config: LogConfig | None = None):
        """Initialize logger with configuration.

        Args:
            config: Logger configuration (defaults to LogConfig())
        """
        self.config = config or LogConfig()
        self._level_order = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def connection(self, connection_id: str, name: str | None = None) -> "ConnectionLogger":
        """Get a logger scoped to one connection.

        Args:
            connection_id: Connection identifier
            name: Optional display name

        Returns:
            ConnectionLogger instance
        """
        return ConnectionLogger(self, connection_id, name)

    def configure(self, config: LogConfig) -> None:
        """Update configuration."""
        self.config = config

    def log(
        self,
        level: LogLevel | str,
        component: str,
        message: str,
        **context: Any,
    ) -> None:
        """Log a message for a component with keyword context."""
        self._log(LogLevel(level), component, message, context or None)

    def truncate(self, value: Any) -> str:
        text = str(value)
        limit = self.config.truncate_at
        return text if len(text) <= limit else text[:limit] + "..."

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_order.get(level, 0) >= self._level_order.get(self.config.level, 1)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Internal logging method.

        Args:
            level: Log level
            component: Component name (registry, broker, client, api, config)
            message: Log message
            context: Additional context data
        """
        if not self._should_log(level):
            return

        # Dotted components ("client.search") are switched by their root
        root = component.split(".", 1)[0]
        if not self.config.components.get(root, True):
            return

        if self.config.format == LogFormat.JSON:
            self._log_json(level, component, message, context)
        else:
            self._log_colored(level, component, message, context)

    def _log_json(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level.value,
            "component": component,
            "message": message,
        }
        if context:
            log_entry.update(context)

        print(json.dumps(log_entry, default=str), file=self.config.output)

    def _log_colored(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        level_colors = {
            LogLevel.DEBUG: LIGHT_BLUE,
            LogLevel.INFO: CYAN,
            LogLevel.WARN: YELLOW,
            LogLevel.ERROR: RED,
        }

        color = level_colors.get(level, RESET)
        component_color = {
            "registry": MAGENTA,
            "broker": GREEN,
            "client": ORANGE,
            "api": CYAN,
        }.get(component.split(".", 1)[0], RESET)

        # Format: [COMPONENT] message
        output = f"{component_color}[{component.upper()}]{RESET} {color}{message}{RESET}"

        if context and self.config.show_params:
            output += f" {LIGHT_BLUE}{self.truncate(context)}{RESET}"

        print(output, file=self.config.output)


class ConnectionLogger:
    """Logger for connection lifecycle events."""

    def __init__(self, parent: RelayLogger, connection_id: str, name: str | None = None):
        """Initialize connection logger.

        Args:
            parent: Parent RelayLogger instance
            connection_id: Connection identifier
            name: Optional display name
        """
        self.parent = parent
        self.connection_id = connection_id
        self.name = name

    def _context(self, event: str, **extra: Any) -> dict[str, Any]:
        context: dict[str, Any] = {"connection_id": self.connection_id, "event": event}
        if self.name:
            context["connection_name"] = self.name
        context.update(extra)
        return context

    def adding(self, connection_type: str) -> None:
        """Log start of connection creation."""
        message = f"Adding MCP connection: {self.name} ({connection_type}) - ID: {self.connection_id}"
        self.parent._log(
            LogLevel.INFO,
            "registry",
            message,
            self._context("connection_adding", connection_type=connection_type),
        )

    def added(self) -> None:
        """Log successful connection creation."""
        self.parent._log(
            LogLevel.INFO,
            "registry",
            f"MCP connection added successfully: {self.connection_id} ✓",
            self._context("connection_added"),
        )

    def add_failed(self, error: Exception) -> None:
        """Log failed connection creation.

        Args:
            error: Exception raised by the client during initialization
        """
        self.parent._log(
            LogLevel.ERROR,
            "registry",
            f"Failed to add MCP connection {self.connection_id}: {error}",
            self._context(
                "connection_add_failed",
                error=str(error),
                error_type=type(error).__name__,
            ),
        )

    def removed(self, had_client: bool, had_config: bool) -> None:
        """Log connection removal outcome."""
        context = self._context("connection_removed", had_client=had_client, had_config=had_config)
        if not had_client:
            self.parent._log(
                LogLevel.WARN,
                "registry",
                f"No active MCP client found for connection ID: {self.connection_id}",
                context,
            )
        if had_config:
            self.parent._log(
                LogLevel.INFO,
                "registry",
                f"MCP connection configuration removed: {self.connection_id}",
                context,
            )
        else:
            self.parent._log(
                LogLevel.WARN,
                "registry",
                f"MCP connection configuration not found for removal: {self.connection_id}",
                context,
            )

    def tool(self) -> "ToolLogger":
        """Get a logger for tool traffic on this connection."""
        return ToolLogger(self)


class ToolLogger:
    """Logger for tool discovery and call events."""

    def __init__(self, parent: ConnectionLogger):
        """Initialize tool logger.

        Args:
            parent: Parent ConnectionLogger instance
        """
        self.parent = parent

    @property
    def _root(self) -> RelayLogger:
        return self.parent.parent

    def listing(self) -> None:
        """Log tool list request."""
        self._root._log(
            LogLevel.DEBUG,
            "broker",
            f"Listing tools for connection: {self.parent.connection_id}",
            self.parent._context("tools_listing"),
        )

    def listed(self, count: int) -> None:
        """Log tool list result."""
        self._root._log(
            LogLevel.INFO,
            "broker",
            f"Tools listed successfully for: {self.parent.connection_id} ({count} tools)",
            self.parent._context("tools_listed", tool_count=count),
        )

    def calling(self, tool_name: str, params: Any = None) -> None:
        """Log tool call start.

        Args:
            tool_name: Name of the tool being called
            params: Opaque tool parameters
        """
        context = self.parent._context("tool_calling", tool_name=tool_name)
        if params is not None:
            context["params"] = params

        self._root._log(
            LogLevel.INFO,
            "broker",
            f"Calling tool '{tool_name}' on connection: {self.parent.connection_id}",
            context,
        )

    def result(self, tool_name: str, result: Any, duration_ms: int) -> None:
        """Log tool call result.

        Args:
            tool_name: Name of the tool
            result: Opaque tool result
            duration_ms: Round trip duration in milliseconds
        """
        context = self.parent._context("tool_result", tool_name=tool_name, duration_ms=duration_ms)

        duration_s = duration_ms / 1000
        message = f"Tool '{tool_name}' completed ({duration_s:.2f}s) ✓"

        if self._root.config.show_results:
            context["result"] = self._root.truncate(result)

        self._root._log(LogLevel.INFO, "broker", message, context)

    def failed(self, operation: str, error: Exception, tool_name: str | None = None) -> None:
        """Log a failed list or call.

        Args:
            operation: "list_tools" or "call_tool"
            error: Exception raised by the client
            tool_name: Tool name for call_tool failures
        """
        context = self.parent._context(
            "tool_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )
        if tool_name:
            context["tool_name"] = tool_name
            message = (
                f"Error calling tool '{tool_name}' for {self.parent.connection_id}: {error}"
            )
        else:
            message = f"Error listing tools for {self.parent.connection_id}: {error}"

        self._root._log(LogLevel.ERROR, "broker", message, context)
