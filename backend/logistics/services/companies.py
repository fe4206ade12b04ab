# logistics/services/companies.py
"""
Company registration.

Ids look like COMP-<year>-<seq>: <year> is the fiscal year's start year and
<seq> is the highest sequence already used in that fiscal year plus one,
zero-padded to three digits. An id is never handed out twice: creation checks
every `companies` collection before writing and the write itself fails if the
document already exists.
"""
import logging
from typing import Any, Dict, Optional

from google.api_core.exceptions import AlreadyExists

from logistics.core.constants import COMPANY_ID_PREFIX
from logistics.repositories import companies as repo
from logistics.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate
from logistics.services.postal_codes import get_postal_directory, normalize_postal_code

logger = logging.getLogger(__name__)

MAX_ID_ATTEMPTS = 5


class CompanyIdConflict(Exception):
    pass


def fiscal_year_start(fiscal_year: str) -> str:
    """'2025_2026' → '2025'"""
    return fiscal_year.split("_")[0]


def format_company_id(year: str, seq: int) -> str:
    return f"{COMPANY_ID_PREFIX}-{year}-{seq:03d}"


def next_company_id(fiscal_year: str, latest: Optional[str]) -> str:
    year = fiscal_year_start(fiscal_year)
    seq = 1
    if latest:
        try:
            seq = int(latest.split("-")[2]) + 1
        except (IndexError, ValueError):
            logger.warning("Unparseable company id %r in %s", latest, fiscal_year)
    return format_company_id(year, seq)


async def generate_company_id(fiscal_year: str) -> str:
    latest = await repo.latest_company_id(fiscal_year, fiscal_year_start(fiscal_year))
    return next_company_id(fiscal_year, latest)


def _fill_address(data: Dict[str, Any]) -> None:
    """Prefecture/city/address from the postal table when the form left them empty."""
    if data.get("prefecture") and data.get("city"):
        return
    try:
        found = get_postal_directory().lookup(data.get("postalCode"))
    except (OSError, ValueError) as exc:
        logger.warning("Postal table unavailable: %s", exc)
        return
    if found:
        data["prefecture"] = data.get("prefecture") or found["prefecture"]
        data["city"] = data.get("city") or found["city"]
        data["address"] = data.get("address") or found["town"]


def to_document(payload) -> Dict[str, Any]:
    """Pydantic input → Firestore field names (only the fields that were set)."""
    src = payload.model_dump(exclude_unset=True)
    mapping = {
        "name": "name",
        "name_kana": "companyNameKana",
        "postal_code": "postalCode",
        "prefecture": "prefecture",
        "city": "city",
        "address": "address",
        "building": "building",
        "phone": "phone",
        "email": "email",
        "tax_registration_no": "taxRegistrationNo",
        "status": "status",
    }
    doc = {mapping[k]: v for k, v in src.items() if k in mapping}
    if "postalCode" in doc:
        doc["postalCode"] = normalize_postal_code(doc["postalCode"]) or doc["postalCode"]
    if "bank_accounts" in src and payload.bank_accounts is not None:
        doc["bankAccounts"] = [
            {
                "bankName": a.bank_name,
                "branchName": a.branch_name,
                "accountType": a.account_type,
                "accountNumber": a.account_number,
                "accountHolder": a.account_holder,
            }
            for a in payload.bank_accounts
        ]
    return doc


def to_company_out(data: Dict[str, Any]) -> CompanyOut:
    return CompanyOut(
        id=data.get("id", data.get("companyId", "")),
        company_id=data.get("companyId", data.get("id", "")),
        name=data.get("name", ""),
        name_kana=data.get("companyNameKana"),
        postal_code=data.get("postalCode", ""),
        prefecture=data.get("prefecture"),
        city=data.get("city"),
        address=data.get("address"),
        building=data.get("building"),
        phone=data.get("phone"),
        email=data.get("email"),
        tax_registration_no=data.get("taxRegistrationNo") or None,
        bank_accounts=[
            {
                "bank_name": a.get("bankName", ""),
                "branch_name": a.get("branchName", ""),
                "account_type": a.get("accountType", "savings"),
                "account_number": a.get("accountNumber", ""),
                "account_holder": a.get("accountHolder", ""),
            }
            for a in data.get("bankAccounts") or []
        ],
        owner_id=data.get("ownerId"),
        owner_email=data.get("ownerEmail"),
        financial_year=data.get("financialYear"),
        status=data.get("status", "active"),
    )


async def register_company(
    fiscal_year: str,
    payload: CompanyCreate,
    owner_id: str,
    owner_email: Optional[str],
) -> Dict[str, Any]:
    data = to_document(payload)
    _fill_address(data)
    data.update({
        "ownerId": owner_id,
        "ownerEmail": owner_email,
        "financialYear": fiscal_year,
        "status": "active",
    })

    company_id = await generate_company_id(fiscal_year)
    for _ in range(MAX_ID_ATTEMPTS):
        if await repo.company_id_exists(company_id):
            # used by another fiscal year with the same start year
            company_id = next_company_id(fiscal_year, company_id)
            continue
        try:
            created = await repo.create(fiscal_year, company_id, data)
        except AlreadyExists:
            logger.info("Company id %s taken concurrently, retrying", company_id)
            company_id = next_company_id(fiscal_year, company_id)
            continue
        logger.info("Registered company %s in %s", company_id, fiscal_year)
        return created
    raise CompanyIdConflict(f"no free company id in {fiscal_year}")


async def update_company(fiscal_year: str, company_id: str, payload: CompanyUpdate) -> Optional[Dict[str, Any]]:
    data = to_document(payload)
    if "postalCode" in data:
        _fill_address(data)
    return await repo.merge_update(fiscal_year, company_id, data)
