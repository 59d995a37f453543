"""API key authentication middleware.

Keys are presented as `X-API-Key: <key>` or `Authorization: Bearer <key>`.
Safe methods need the "read" scope; anything that creates, removes or
calls needs "write".
"""

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from toolrelay_core.api.config import APIKeyConfig
from toolrelay_core.api.middleware.request_id import get_request_id
from toolrelay_core.errors import RelayError, create_error

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def required_scope(method: str) -> str:
    """Scope an API key needs for an HTTP method."""
    return "read" if method.upper() in READ_METHODS else "write"


def presented_key(request: Request) -> str | None:
    """Extract the API key from the request headers, if any."""
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


class APIKeyAuthMiddleware(BaseHTTPMiddleware):
    """Rejects requests without a valid, sufficiently scoped API key."""

    def __init__(self, app, api_keys: list[APIKeyConfig], exclude_paths: list[str] | None = None):
        """Initialize middleware.

        Args:
            app: ASGI application
            api_keys: Accepted keys and their scopes
            exclude_paths: Exact paths served without a key
        """
        super().__init__(app)
        self.api_keys = list(api_keys)
        self.exclude_paths = exclude_paths or ["/health", "/docs", "/openapi.json"]

    def _lookup(self, presented: str) -> APIKeyConfig | None:
        # Compare against every key so timing does not reveal which one matched
        match = None
        for key_config in self.api_keys:
            if secrets.compare_digest(key_config.key.encode(), presented.encode()):
                match = key_config
        return match

    def _reject(self, error: RelayError) -> JSONResponse:
        body = error.to_dict()
        body["request_id"] = get_request_id()
        return JSONResponse(status_code=error.http_status, content={"error": body})

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        api_key = presented_key(request)
        if api_key is None:
            return self._reject(create_error("AUTH_MISSING_KEY"))

        key_config = self._lookup(api_key)
        if key_config is None:
            return self._reject(create_error("AUTH_INVALID_KEY"))

        scope = required_scope(request.method)
        if scope not in key_config.scopes:
            return self._reject(
                create_error("AUTH_INSUFFICIENT_SCOPE", key_name=key_config.name, scope=scope)
            )

        request.state.api_key_name = key_config.name
        request.state.api_key_scopes = list(key_config.scopes)
        return await call_next(request)
