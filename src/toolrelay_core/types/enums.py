"""Shared enumerations for toolrelay."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class ConnectionType(str, Enum):
    """Transport variant of a tool provider connection.

    HTTP is the network variant, STDIO the subprocess variant.
    """

    HTTP = "http"
    STDIO = "stdio"


class ConnectionStatus(str, Enum):
    """Live state of a registered connection."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
