"""Authentication hook for REST API.

The AuthHook provides a pluggable authorization check. The default hook is
a no-op that allows every request; deployments that need per-user
permissions replace the module-level instance at startup:

    import toolrelay_core.api.auth as auth_module

    class RBACAuthHook(AuthHook):
        async def check_permission(self, request: Request, permission: str) -> None:
            if permission not in request.state.api_key_scopes:
                raise HTTPException(403, "Permission denied")

    auth_module.auth_hook = RBACAuthHook()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import Request

logger = logging.getLogger(__name__)


class AuthHook:
    """Authorization hook for REST API. Allows all requests by default."""

    async def check_permission(self, request: Request, permission: str) -> None:
        """Check if the request has the required permission.

        Args:
            request: FastAPI request object
            permission: Permission string (e.g., "connection:create")

        Raises:
            HTTPException: If permission is denied (never in the default hook)
        """
        logger.debug(f"Auth check (no-op): {permission}")


# Replaceable at startup
auth_hook = AuthHook()


class ConnectionPermissions:
    """Permission constants for connection and tool endpoints."""

    CREATE = "connection:create"
    LIST = "connection:list"
    READ = "connection:read"
    DELETE = "connection:delete"
    LIST_TOOLS = "tool:list"
    CALL_TOOL = "tool:call"
