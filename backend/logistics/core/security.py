"""
# `logistics/core/security.py`: Workspace access dependencies

Every protected endpoint receives the caller's resolved `WorkspaceContext`
and checks it with the route guard's `evaluate_access`.

## Flow
1. `get_principal` verifies `Authorization: Bearer <Firebase ID token>`.
2. `get_workspace` looks up the last resolved context for that uid in the
   session registry. If there is none (first request, or the registry swept
   it), a "session restored" event is published and the bootstrap engine
   resolves it. A resolution still running after
   `SESSION_RESOLVE_TIMEOUT_SECONDS` counts as abandoned and is restarted.
3. `require_workspace(...)` turns a non-granted decision into an HTTP error.
   While a resolution is in flight every view answers `pending`:

| state                     | status |
|---------------------------|--------|
| authentication_required   | 401    |
| access_denied             | 403    |
| configuration_required    | 403    |
| pending                   | 425    |

`detail` is always `{"code", "message", "role", "required"}` so the client
can render the blocking state in place.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status

from logistics.config import settings
from logistics.core import constants as C
from logistics.core.auth import get_principal
from logistics.core.session import get_identity, get_registry
from logistics.schemas.principal import Principal
from logistics.schemas.workspace import AccessDeniedDetail, WorkspaceContext
from logistics.services.identity import IdentityProvider
from logistics.services.route_guard import AccessState, evaluate_access
from logistics.services.session_bootstrap import SessionRegistry

STATUS_BY_STATE = {
    AccessState.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    AccessState.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    AccessState.CONFIGURATION_REQUIRED: status.HTTP_403_FORBIDDEN,
    AccessState.PENDING: status.HTTP_425_TOO_EARLY,
}


async def get_workspace(
    principal: Principal = Depends(get_principal),
    registry: SessionRegistry = Depends(get_registry),
    identity: IdentityProvider = Depends(get_identity),
) -> WorkspaceContext:
    """Resolved context for the caller; triggers a session restore when none is cached."""
    context: Optional[WorkspaceContext] = registry.get(principal.uid)
    if (
        context is None
        or not context.authenticated
        or registry.stalled(principal.uid, settings.session_resolve_timeout_seconds)
    ):
        await identity.publish(principal.uid, principal)
        context = registry.get(principal.uid)
    else:
        registry.touch(principal.uid)
    return context or WorkspaceContext.signed_out()


def require_workspace(*allowed_roles: str, admin_only: bool = False):
    """
    Dependency factory: `Depends(require_workspace("operator", "admin"))`.
    Returns the context when access is granted.
    """
    async def _dependency(context: WorkspaceContext = Depends(get_workspace)) -> WorkspaceContext:
        decision = evaluate_access(context, allowed_roles, admin_only=admin_only)
        if not decision.granted:
            detail = AccessDeniedDetail(
                code=decision.state.value,
                message=decision.message,
                role=decision.role or None,
                required=list(decision.required),
            )
            raise HTTPException(status_code=STATUS_BY_STATE[decision.state], detail=detail.model_dump())
        return context

    return _dependency


get_current_admin = require_workspace(C.ROLE_ADMIN, admin_only=True)
get_company_staff = require_workspace(C.ROLE_ADMIN, C.ROLE_OPERATOR)
