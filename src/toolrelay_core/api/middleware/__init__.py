"""REST API middleware."""

from .auth import APIKeyAuthMiddleware
from .request_id import RequestIDMiddleware, get_request_id

__all__ = [
    "APIKeyAuthMiddleware",
    "RequestIDMiddleware",
    "get_request_id",
]
