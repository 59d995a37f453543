"""REST API routers."""

from .connections import connection_router
from .health import health_router

__all__ = [
    "connection_router",
    "health_router",
]
