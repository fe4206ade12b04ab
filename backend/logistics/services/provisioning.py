# logistics/services/provisioning.py
"""
Company member provisioning (operators, drivers, customers, suppliers).

create_member:
1. mobile number must be unused for that role
2. Firebase Auth account (email generated from role + mobile when missing)
3. one Firestore batch: users/{uid} + financial_years/{fy}/{role}s/{uid}
4. if the batch fails the Auth account is deleted again and
   ProvisioningError is raised, so no half-created member survives

delete_member removes both documents in one batch, then the Auth account.
"""
import logging
import re
from typing import Any, Dict, Optional

from firebase_admin import auth as firebase_auth

from logistics.core.executor import run_blocking
from logistics.repositories import activities
from logistics.repositories import members as repo
from logistics.schemas.user import MemberCreate

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """code: MOBILE_IN_USE | EMAIL_EXISTS | AUTH_CREATE_FAILED | WRITE_FAILED | NOT_FOUND"""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        super().__init__(message or code)


def clean_phone_number(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def generate_email(mobile_number: str, role: str, company_id: str) -> str:
    """driver / 090-1234-5678 / COMP-2025-001 → driver.09012345678@comp-2025-001.com"""
    return f"{role}.{clean_phone_number(mobile_number)}@{(company_id or 'company').lower()}.com"


async def create_member(
    payload: MemberCreate,
    company_id: str,
    fiscal_year: str,
    company_name: str = "",
    created_by: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    created_by = created_by or {}
    mobile = clean_phone_number(payload.mobile_number)
    if await repo.mobile_in_use(mobile, payload.role):
        raise ProvisioningError("MOBILE_IN_USE", f"Mobile number already registered for a {payload.role}")

    email = str(payload.email) if payload.email else generate_email(mobile, payload.role, company_id)
    try:
        record = await run_blocking(
            firebase_auth.create_user,
            email=email,
            password=payload.password,
            display_name=payload.name,
            email_verified=False,
        )
    except firebase_auth.EmailAlreadyExistsError:
        raise ProvisioningError("EMAIL_EXISTS", "Email already registered")
    except Exception as exc:
        logger.exception("Auth account creation failed for %s", email)
        raise ProvisioningError("AUTH_CREATE_FAILED", str(exc))

    uid = record.uid
    profile = {
        "uid": uid,
        "name": payload.name,
        "email": email,
        "mobileNumber": mobile,
        "role": payload.role,
        "companyId": company_id,
        "companyName": company_name,
        "current_fy": fiscal_year,
        "status": "active",
        "createdById": created_by.get("uid"),
        "createdBy": created_by.get("email"),
        "createdByRole": created_by.get("role"),
    }
    membership = {
        "uid": uid,
        "name": payload.name,
        "email": email,
        "mobileNumber": mobile,
        "companyId": company_id,
        "status": "active",
        **payload.details,
    }
    try:
        await repo.write(uid, profile, fiscal_year, payload.role, membership)
    except Exception as exc:
        logger.error("Member write failed for %s, removing auth account: %s", uid, exc)
        try:
            await run_blocking(firebase_auth.delete_user, uid)
        except Exception:
            logger.exception("Compensating delete failed for %s", uid)
        raise ProvisioningError("WRITE_FAILED", str(exc))

    await activities.log(
        f"{payload.role.upper()}_CREATED",
        payload.role,
        company_id,
        created_by.get("uid"),
        created_by.get("email"),
        {"userName": payload.name, "mobileNumber": mobile, "email": email, "userId": uid},
    )
    logger.info("Provisioned %s %s in %s/%s", payload.role, uid, fiscal_year, company_id)
    return {**profile, "id": uid}


async def delete_member(uid: str, performed_by: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    performed_by = performed_by or {}
    profile = await repo.get_profile(uid)
    if profile is None:
        raise ProvisioningError("NOT_FOUND", "User not found")

    role = profile.get("role") or ""
    fiscal_year = profile.get("current_fy") or profile.get("fyId") or ""
    await repo.delete(uid, fiscal_year, role)
    try:
        await run_blocking(firebase_auth.delete_user, uid)
    except firebase_auth.UserNotFoundError:
        logger.info("Auth account for %s already gone", uid)

    await activities.log(
        "USER_DELETED",
        role,
        profile.get("companyId") or "",
        performed_by.get("uid"),
        performed_by.get("email"),
        {"userId": uid, "userName": profile.get("name")},
    )
    return profile
