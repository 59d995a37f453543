"""REST API Pydantic models."""

from .common import ErrorDetail, ErrorResponse, FieldError, HealthCheck, HealthStatus
from .connection import (
    ConnectionDeleteResponse,
    ConnectionListResponse,
    ConnectionResponse,
    HttpConnectionCreateRequest,
    StdioConnectionCreateRequest,
    ToolCallRequest,
    ToolCallResponse,
    ToolInfo,
    ToolListResponse,
)

__all__ = [
    # Common
    "ErrorDetail",
    "ErrorResponse",
    "FieldError",
    "HealthCheck",
    "HealthStatus",
    # Connection
    "HttpConnectionCreateRequest",
    "StdioConnectionCreateRequest",
    "ConnectionResponse",
    "ConnectionListResponse",
    "ConnectionDeleteResponse",
    # Tool
    "ToolInfo",
    "ToolListResponse",
    "ToolCallRequest",
    "ToolCallResponse",
]
