"""REST API error handlers.

All error responses share one body shape: {"error": {code, category,
message, detail, ..., request_id}}.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from toolrelay_core.api.middleware.request_id import REQUEST_ID_HEADER, get_request_id
from toolrelay_core.errors import RelayError, create_error
from toolrelay_core.types import LogLevel


def _error_response(request: Request, status_code: int, error: dict[str, Any]) -> JSONResponse:
    # Unhandled exceptions reach the handler after RequestIDMiddleware has
    # reset its context; request.state still holds the id
    request_id = get_request_id() or getattr(request.state, "request_id", None)
    error["request_id"] = request_id
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _log(request: Request, level: LogLevel, message: str, **context: Any) -> None:
    logger = getattr(request.app.state, "logger", None)
    if logger:
        logger._log(level, "api", f"{request.method} {request.url.path}: {message}", context or None)


def _field_path(loc: Any) -> str:
    # ("body", "url") -> "url"; path/query params keep their location
    parts = [str(part) for part in loc or ()]
    if parts and parts[0] == "body":
        parts = parts[1:]
    return ".".join(parts) or "body"


def setup_error_handlers(app: FastAPI) -> None:
    """Configure error handlers for the FastAPI app."""

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        """Render a RelayError with its own HTTP status."""
        if exc.is_client_error:
            _log(request, LogLevel.DEBUG, exc.message, code=exc.code)
        else:
            _log(request, LogLevel.ERROR, exc.message, code=exc.code, detail=exc.detail)
        return _error_response(request, exc.http_status, exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Render plain HTTP errors (unknown routes, missing resources)."""
        category = "VALIDATION" if exc.status_code < 500 else "SYSTEM"
        return _error_response(
            request,
            exc.status_code,
            {
                "code": f"HTTP_{exc.status_code}",
                "category": category,
                "message": str(exc.detail),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Render request schema failures as 422 with one entry per field."""
        fields = [
            {"field": _field_path(error.get("loc")), "message": error.get("msg", "invalid")}
            for error in exc.errors()
        ]
        first = fields[0] if fields else {"field": "body", "message": "Validation error"}
        return _error_response(
            request,
            422,
            {
                "code": "VALIDATION_ERROR",
                "category": "VALIDATION",
                "message": f"{first['field']}: {first['message']}",
                "detail": "; ".join(f"{f['field']}: {f['message']}" for f in fields) or None,
                "fields": fields,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Render anything unexpected as INTERNAL_ERROR."""
        _log(request, LogLevel.ERROR, f"unhandled {type(exc).__name__}: {exc}")
        error = create_error(
            "INTERNAL_ERROR",
            detail=f"{type(exc).__name__}: {exc}" if app.debug else None,
        )
        return _error_response(request, 500, error.to_dict())
