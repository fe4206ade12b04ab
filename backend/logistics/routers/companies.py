"""
# `logistics/routers/companies.py`: Companies and postal lookup

Companies live under `financial_years/{fy}/companies/{companyId}`; every
admin endpoint works in the admin's current fiscal year.

### GET /admin/companies/next-id
Preview of the id the next registration will get (`COMP-2025-008`).

### POST /admin/companies
Registers a company. The id is assigned on the server; an empty
prefecture/city is filled from the postal code table.

### GET/PUT/DELETE /admin/companies[/{id}]
Management views. They answer 425 until the admin's readiness is known.

### GET /postal-codes/{code}
`100-0001` or `1000001` → prefecture, city, town. 404 when unknown.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from logistics.core import constants as C
from logistics.core.auth import get_principal
from logistics.core.security import get_current_admin, require_workspace
from logistics.core.session import get_identity
from logistics.repositories import activities
from logistics.repositories import companies as repo
from logistics.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate, NextCompanyId, PostalAddress
from logistics.schemas.principal import Principal
from logistics.schemas.workspace import WorkspaceContext
from logistics.services import companies as company_service
from logistics.services.identity import IdentityProvider
from logistics.services.postal_codes import get_postal_directory, normalize_postal_code

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/companies", tags=["Admin: Companies"])
postal_router = APIRouter(prefix="/postal-codes", tags=["Postal codes"])

# registration and the id preview are part of workspace setup, so readiness is not required
_admin_setup = require_workspace(C.ROLE_ADMIN)


def _fiscal_year(context: WorkspaceContext) -> str:
    if not context.fiscal_year:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Create or select a fiscal year first",
        )
    return context.fiscal_year


@admin_router.get("", response_model=List[CompanyOut])
async def list_companies(context: WorkspaceContext = Depends(get_current_admin)):
    return [company_service.to_company_out(c) for c in await repo.list_all(_fiscal_year(context))]


@admin_router.get("/next-id", response_model=NextCompanyId)
async def preview_next_company_id(context: WorkspaceContext = Depends(_admin_setup)):
    fy = _fiscal_year(context)
    return NextCompanyId(fiscal_year=fy, company_id=await company_service.generate_company_id(fy))


@admin_router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    context: WorkspaceContext = Depends(_admin_setup),
    identity: IdentityProvider = Depends(get_identity),
):
    fy = _fiscal_year(context)
    principal = context.principal
    try:
        created = await company_service.register_company(fy, payload, principal.uid, principal.email)
    except company_service.CompanyIdConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    await activities.log(
        "COMPANY_CREATED", "company", created["companyId"], principal.uid, principal.email,
        {"companyName": created.get("name")},
    )
    # first company flips the admin's readiness
    await identity.publish(principal.uid, principal)
    return company_service.to_company_out(created)


@admin_router.get("/{company_id}", response_model=CompanyOut)
async def get_company(company_id: str, context: WorkspaceContext = Depends(get_current_admin)):
    company = await repo.get(_fiscal_year(context), company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company_service.to_company_out(company)


@admin_router.put("/{company_id}", response_model=CompanyOut)
async def update_company(
    company_id: str,
    payload: CompanyUpdate,
    context: WorkspaceContext = Depends(get_current_admin),
):
    updated = await company_service.update_company(_fiscal_year(context), company_id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company_service.to_company_out(updated)


@admin_router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: str,
    context: WorkspaceContext = Depends(get_current_admin),
    identity: IdentityProvider = Depends(get_identity),
):
    if not await repo.delete(_fiscal_year(context), company_id):
        raise HTTPException(status_code=404, detail="Company not found")
    principal = context.principal
    await activities.log("COMPANY_DELETED", "company", company_id, principal.uid, principal.email)
    await identity.publish(principal.uid, principal)


@postal_router.get("/{code}", response_model=PostalAddress)
async def lookup_postal_code(code: str, _: Principal = Depends(get_principal)):
    if normalize_postal_code(code) is None:
        raise HTTPException(status_code=422, detail="Postal code must have 7 digits")
    try:
        found = get_postal_directory().lookup(code)
    except (OSError, ValueError) as exc:
        logger.error("Postal code table unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Postal code lookup unavailable")
    if found is None:
        raise HTTPException(status_code=404, detail="Postal code not found")
    return PostalAddress(**found)
