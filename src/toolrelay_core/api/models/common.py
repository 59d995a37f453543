"""Common REST API models: error bodies and health."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from toolrelay_core.types import ConnectionStatus


class FieldError(BaseModel):
    """One failing request field (422 responses only)."""

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Body of every error response; mirrors RelayError.to_dict()."""

    code: str = Field(..., examples=["CONNECTION_NOT_ACTIVE"])
    category: str
    message: str
    detail: str | None = None
    suggestion: str | None = None
    retryable: bool = False
    connection_id: str | None = None
    connection_name: str | None = None
    tool_name: str | None = None
    fields: list[FieldError] | None = None
    request_id: str | None = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: ErrorDetail


class HealthStatus(str, Enum):
    """Overall relay health."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"  # some connection has no live client
    UNHEALTHY = "unhealthy"


class HealthCheck(BaseModel):
    """Health check response."""

    status: HealthStatus
    checks: dict[str, str]
    connections: dict[str, ConnectionStatus] = Field(default_factory=dict)
    timestamp: datetime
