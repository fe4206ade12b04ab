"""
# `logistics/routers/fiscal_years.py`: Fiscal years

| Method | Path | Who | Notes |
|--------|------|-----|-------|
| GET  | /fiscal-years | signed in | all fiscal years |
| POST | /admin/fiscal-years | admin | id `<startYear>_<endYear>`, 409 if it exists, becomes the admin's current year |
| PUT  | /admin/fiscal-years/current | admin | switch the admin's current year |

After a write the admin's workspace is resolved again so readiness and the
route guard destination reflect the new year immediately.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from google.api_core.exceptions import AlreadyExists

from logistics.core.auth import get_principal
from logistics.core.security import require_workspace
from logistics.core import constants as C
from logistics.core.session import get_identity, get_registry
from logistics.repositories import activities
from logistics.repositories import fiscal_years as repo
from logistics.schemas.fiscal_year import CurrentFiscalYearIn, FiscalYearCreate, FiscalYearOut
from logistics.schemas.principal import Principal
from logistics.schemas.workspace import SessionOut, WorkspaceContext
from logistics.services.identity import IdentityProvider
from logistics.services.route_guard import resolve_destination
from logistics.services.session_bootstrap import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fiscal-years", tags=["Fiscal years"])
admin_router = APIRouter(prefix="/fiscal-years", tags=["Admin: Fiscal years"])

# fiscal-year setup has to work before the admin's workspace is ready
_admin_setup = require_workspace(C.ROLE_ADMIN)


def _to_out(src: dict) -> FiscalYearOut:
    return FiscalYearOut(
        id=src["id"],
        start_date=src.get("startDate"),
        end_date=src.get("endDate"),
        created_by=src.get("createdBy"),
        status=src.get("status", "active"),
    )


async def _refresh(principal: Principal, identity: IdentityProvider, registry: SessionRegistry) -> SessionOut:
    await identity.publish(principal.uid, principal)
    context = registry.get(principal.uid) or WorkspaceContext.signed_out()
    return SessionOut(workspace=context, destination=resolve_destination(context, C.PATH_FY_SETUP))


@router.get("", response_model=List[FiscalYearOut])
async def list_fiscal_years(_: Principal = Depends(get_principal)):
    return [_to_out(fy) for fy in await repo.list_all()]


@admin_router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_fiscal_year(
    payload: FiscalYearCreate = Depends(FiscalYearCreate.as_form),
    context: WorkspaceContext = Depends(_admin_setup),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
):
    principal = context.principal
    fy_id = payload.fiscal_year_id
    try:
        await repo.create(fy_id, payload.start_date.isoformat(), payload.end_date.isoformat(), principal.uid)
    except AlreadyExists:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Fiscal year {fy_id} already exists")

    await repo.set_current(principal.uid, fy_id)
    await activities.log("FISCAL_YEAR_CREATED", "fiscal_year", "", principal.uid, principal.email, {"fiscalYear": fy_id})
    logger.info("Fiscal year %s created by %s", fy_id, principal.uid)
    return await _refresh(principal, identity, registry)


@admin_router.put("/current", response_model=SessionOut)
async def set_current_fiscal_year(
    payload: CurrentFiscalYearIn,
    context: WorkspaceContext = Depends(_admin_setup),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
):
    if await repo.get(payload.fiscal_year) is None:
        raise HTTPException(status_code=404, detail="Fiscal year not found")
    await repo.set_current(context.principal.uid, payload.fiscal_year)
    return await _refresh(context.principal, identity, registry)
