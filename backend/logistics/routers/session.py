# logistics/routers/session.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from logistics.core import constants as C
from logistics.core.auth import get_optional_principal, get_principal
from logistics.core.session import get_identity, get_registry
from logistics.schemas.principal import Principal
from logistics.schemas.workspace import SessionOut, WorkspaceContext
from logistics.services.identity import IdentityProvider
from logistics.services.route_guard import resolve_destination
from logistics.services.session_bootstrap import SessionRegistry

router = APIRouter(prefix="/session", tags=["Session"])


@router.get("", response_model=SessionOut, summary="Restore the session")
async def restore_session(
    path: str = Query(C.PATH_DASHBOARD, description="Page the client is on"),
    principal: Principal = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Called when the client starts with a stored token: the workspace is
    resolved again from Firestore.
    """
    await identity.publish(principal.uid, principal)
    context = registry.get(principal.uid) or WorkspaceContext.signed_out()
    return SessionOut(workspace=context, destination=resolve_destination(context, path))


@router.get("/destination", response_model=SessionOut, summary="Where the client should be")
async def destination(
    path: str = Query(..., description="Page the client is on"),
    principal: Optional[Principal] = Depends(get_optional_principal),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
):
    if principal is None:
        context = WorkspaceContext.signed_out()
    else:
        context = registry.get(principal.uid)
        if context is None or not context.authenticated:
            await identity.publish(principal.uid, principal)
            context = registry.get(principal.uid)
        context = context or WorkspaceContext.signed_out()
    return SessionOut(workspace=context, destination=resolve_destination(context, path))
