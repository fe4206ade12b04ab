"""
# `logistics/routers/users.py`: Profiles and member provisioning

### GET /users/me
The caller's `users/{uid}` profile.

### POST /admin/users
Admin or operator creates a login for a company member.
- Operators always create in their own company and cannot create operators.
- Admins pick the company with `company_id` (looked up in their current
  fiscal year).
- 409 when the mobile number (per role) or the email is already used.

### GET /admin/users?role=
Members of the caller's company (admins pass `company_id`).

### DELETE /admin/users/{uid}
Removes the profile, the fiscal-year membership and the Firebase account.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from logistics.core import constants as C
from logistics.core.auth import get_principal
from logistics.core.security import get_company_staff
from logistics.repositories import companies as company_repo
from logistics.repositories import members as member_repo
from logistics.schemas.principal import Principal
from logistics.schemas.user import MemberCreate, MemberOut, UserProfile
from logistics.schemas.workspace import WorkspaceContext
from logistics.services.provisioning import ProvisioningError, create_member, delete_member

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])
admin_router = APIRouter(prefix="/users", tags=["Admin: Users"])

STATUS_BY_CODE = {
    "MOBILE_IN_USE": status.HTTP_409_CONFLICT,
    "EMAIL_EXISTS": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "AUTH_CREATE_FAILED": status.HTTP_400_BAD_REQUEST,
    "WRITE_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _to_member_out(src: dict) -> MemberOut:
    return MemberOut(
        id=src.get("id") or src.get("uid", ""),
        role=src.get("role", ""),
        name=src.get("name"),
        email=src.get("email"),
        mobile_number=src.get("mobileNumber"),
        company_id=src.get("companyId", "") or "",
        fiscal_year=src.get("current_fy") or src.get("fyId") or "",
        status=src.get("status", "active"),
    )


def _actor(context: WorkspaceContext) -> dict:
    return {"uid": context.principal.uid, "email": context.principal.email, "role": context.role}


def _scope_company(context: WorkspaceContext, requested: Optional[str]) -> str:
    if context.role == C.ROLE_ADMIN:
        if not requested:
            raise HTTPException(status_code=422, detail="company_id is required")
        return requested
    if requested and requested != context.company_id:
        raise HTTPException(status_code=403, detail="Operators can only manage their own company")
    return context.company_id


@router.get("/me", response_model=UserProfile)
async def get_my_profile(principal: Principal = Depends(get_principal)):
    profile = await member_repo.get_profile(principal.uid)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    return UserProfile(
        id=principal.uid,
        email=profile.get("email") or principal.email,
        name=profile.get("name"),
        role=profile.get("role") or C.ROLE_DEFAULT,
        company_id=profile.get("companyId") or "",
        fiscal_year=profile.get("current_fy") or profile.get("fyId") or "",
        status=profile.get("status", "active"),
    )


@admin_router.post("", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
async def provision_member(
    payload: MemberCreate,
    context: WorkspaceContext = Depends(get_company_staff),
):
    if context.role == C.ROLE_OPERATOR and payload.role == C.ROLE_OPERATOR:
        raise HTTPException(status_code=403, detail="Only admins can create operators")
    if not context.fiscal_year:
        raise HTTPException(status_code=409, detail="Create or select a fiscal year first")

    company_id = _scope_company(context, payload.company_id)
    if context.role == C.ROLE_ADMIN:
        company = await company_repo.get(context.fiscal_year, company_id)
        if company is None:
            raise HTTPException(status_code=404, detail="Company not found")
    else:
        company = context.company or {}

    try:
        created = await create_member(
            payload,
            company_id=company_id,
            fiscal_year=context.fiscal_year,
            company_name=company.get("name", ""),
            created_by=_actor(context),
        )
    except ProvisioningError as exc:
        raise HTTPException(status_code=STATUS_BY_CODE.get(exc.code, 400), detail={"code": exc.code, "message": str(exc)})
    return _to_member_out(created)


@admin_router.get("", response_model=List[MemberOut])
async def list_members(
    role: Optional[str] = Query(None, description="operator / driver / customer / supplier"),
    company_id: Optional[str] = Query(None, description="Admins only"),
    context: WorkspaceContext = Depends(get_company_staff),
):
    scope = _scope_company(context, company_id)
    return [_to_member_out(m) for m in await member_repo.list_by_company(scope, role)]


@admin_router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(uid: str, context: WorkspaceContext = Depends(get_company_staff)):
    if uid == context.principal.uid:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    if context.role != C.ROLE_ADMIN:
        target = await member_repo.get_profile(uid)
        if target is None:
            raise HTTPException(status_code=404, detail="User not found")
        if target.get("companyId") != context.company_id or target.get("role") in (C.ROLE_ADMIN, C.ROLE_OPERATOR):
            raise HTTPException(status_code=403, detail="Not allowed to delete this user")

    try:
        await delete_member(uid, performed_by=_actor(context))
    except ProvisioningError as exc:
        raise HTTPException(status_code=STATUS_BY_CODE.get(exc.code, 400), detail=str(exc))
    logger.info("Member %s deleted by %s", uid, context.principal.uid)
