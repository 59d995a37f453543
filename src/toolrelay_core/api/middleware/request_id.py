"""Request ID middleware.

Every response carries X-Request-ID. A caller-supplied id is echoed back
when it looks sane; otherwise a fresh one is generated.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_var.get()


def _incoming_request_id(request: Request) -> str:
    presented = request.headers.get(REQUEST_ID_HEADER)
    if presented and _VALID_REQUEST_ID.match(presented):
        return presented
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the request context and the response headers."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
