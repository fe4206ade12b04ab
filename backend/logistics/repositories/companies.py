# logistics/repositories/companies.py
"""
financial_years/{fy}/companies/{companyId}

New companies use the companyId as document id; older documents were added
with generated ids, so lookups fall back to a `companyId` field query.
"""
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core.constants import COMPANIES, FINANCIAL_YEARS


def _col(fy: str):
    return get_db().collection(FINANCIAL_YEARS).document(fy).collection(COMPANIES)


def _to_dict(snap) -> Dict[str, Any]:
    return {**(snap.to_dict() or {}), "id": snap.id}


async def latest_company_id(fy: str, year: str) -> Optional[str]:
    """Highest COMP-<year>-NNN in the fiscal year, or None."""
    prefix = f"COMP-{year}-"
    docs = await (
        _col(fy)
        .where(filter=FieldFilter("companyId", ">=", prefix))
        .where(filter=FieldFilter("companyId", "<=", prefix + "\uf8ff"))
        .order_by("companyId", direction=gcf.Query.DESCENDING)
        .limit(1)
        .get()
    )
    if not docs:
        return None
    return (docs[0].to_dict() or {}).get("companyId")


async def company_id_exists(company_id: str) -> bool:
    """Checks every `companies` collection (all fiscal years and the flat one)."""
    docs = await (
        get_db().collection_group(COMPANIES)
        .where(filter=FieldFilter("companyId", "==", company_id))
        .limit(1)
        .get()
    )
    return len(docs) > 0


async def create(fy: str, company_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Raises google.api_core.exceptions.AlreadyExists if the id is taken in this year."""
    ref = _col(fy).document(company_id)
    await ref.create({**data, "companyId": company_id, "createdAt": SERVER_TIMESTAMP})
    return _to_dict(await ref.get())


async def _find_ref(fy: str, company_id: str):
    ref = _col(fy).document(company_id)
    snap = await ref.get()
    if snap.exists:
        return ref
    docs = await _col(fy).where(filter=FieldFilter("companyId", "==", company_id)).limit(1).get()
    return docs[0].reference if docs else None


async def get(fy: str, company_id: str) -> Optional[Dict[str, Any]]:
    ref = await _find_ref(fy, company_id)
    if ref is None:
        return None
    return _to_dict(await ref.get())


async def list_all(fy: str) -> List[Dict[str, Any]]:
    return [_to_dict(doc) async for doc in _col(fy).order_by("companyId").stream()]


async def merge_update(fy: str, company_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    ref = await _find_ref(fy, company_id)
    if ref is None:
        return None
    await ref.set({**data, "updatedAt": SERVER_TIMESTAMP}, merge=True)
    return _to_dict(await ref.get())


async def delete(fy: str, company_id: str) -> bool:
    ref = await _find_ref(fy, company_id)
    if ref is None:
        return False
    await ref.delete()
    return True
