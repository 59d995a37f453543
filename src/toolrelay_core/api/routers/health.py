"""Health router."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request

from toolrelay_core.api.models import HealthCheck, HealthStatus
from toolrelay_core.types import ConnectionStatus

health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthCheck)
async def health_check(request: Request) -> HealthCheck:
    """Check relay health and per-connection status."""
    checks: dict[str, str] = {}
    connections: dict[str, ConnectionStatus] = {}

    registry = getattr(request.app.state, "connection_registry", None)
    if registry is None:
        checks["connection_registry"] = "not_configured"
    else:
        connections = registry.get_status()
        checks["connection_registry"] = "ok"

    if checks["connection_registry"] != "ok":
        status = HealthStatus.UNHEALTHY
    elif any(s != ConnectionStatus.CONNECTED for s in connections.values()):
        status = HealthStatus.DEGRADED
    else:
        status = HealthStatus.HEALTHY

    return HealthCheck(
        status=status,
        checks=checks,
        connections=connections,
        timestamp=datetime.now(UTC),
    )
