"""Relay configuration data models."""

from dataclasses import dataclass, field

from toolrelay_core.types import LogFormat, LogLevel


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class APIKeyDefinition:
    """API key accepted by the REST surface."""

    name: str
    key: str
    scopes: list[str] = field(default_factory=lambda: ["read", "write"])


@dataclass
class APIConfig:
    """REST surface configuration."""

    prefix: str = "/api/v1"
    docs_enabled: bool = True
    require_auth: bool = False
    api_keys: list[APIKeyDefinition] = field(default_factory=list)
    cors_enabled: bool = True
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    # False on deployments that cannot spawn processes (e.g. serverless)
    allow_subprocess: bool = True


@dataclass
class ClientConfig:
    """MCP client configuration applied to every connection."""

    timeout: int = 30
    client_name: str = "toolrelay"
    shutdown_timeout: float = 5.0


@dataclass
class LoggingComponentsConfig:
    """Per-component logging switches."""

    registry: bool = True
    broker: bool = True
    client: bool = True
    api: bool = True
    config: bool = True


@dataclass
class LoggingOptionsConfig:
    """Logging options configuration."""

    show_params: bool = True
    show_results: bool = True
    truncate_at: int = 200


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    options: LoggingOptionsConfig = field(default_factory=LoggingOptionsConfig)
    components: LoggingComponentsConfig = field(default_factory=LoggingComponentsConfig)


@dataclass
class RelayConfig:
    """Root configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    api: APIConfig = field(default_factory=APIConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
