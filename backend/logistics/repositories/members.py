# logistics/repositories/members.py
"""
users/{uid} and its denormalised copy financial_years/{fy}/{role}s/{uid}.
Both documents are always written or deleted in one batch.
"""
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core.constants import FINANCIAL_YEARS, USERS, membership_collection


def _membership_ref(db, fy: str, role: str, uid: str):
    return db.collection(FINANCIAL_YEARS).document(fy).collection(membership_collection(role)).document(uid)


async def get_profile(uid: str) -> Optional[Dict[str, Any]]:
    snap = await get_db().collection(USERS).document(uid).get()
    return {**(snap.to_dict() or {}), "id": uid} if snap.exists else None


async def mobile_in_use(mobile_number: str, role: str) -> bool:
    docs = await (
        get_db().collection(USERS)
        .where(filter=FieldFilter("mobileNumber", "==", mobile_number))
        .where(filter=FieldFilter("role", "==", role))
        .limit(1)
        .get()
    )
    return len(docs) > 0


async def write(uid: str, profile: Dict[str, Any], fy: str, role: str, membership: Dict[str, Any]) -> None:
    db = get_db()
    batch = db.batch()
    batch.set(db.collection(USERS).document(uid), {**profile, "createdAt": SERVER_TIMESTAMP})
    batch.set(_membership_ref(db, fy, role, uid), {**membership, "createdAt": SERVER_TIMESTAMP})
    await batch.commit()


async def delete(uid: str, fy: str, role: str) -> None:
    db = get_db()
    batch = db.batch()
    batch.delete(db.collection(USERS).document(uid))
    if fy:
        batch.delete(_membership_ref(db, fy, role, uid))
    await batch.commit()


async def list_by_company(company_id: str, role: Optional[str] = None) -> List[Dict[str, Any]]:
    q = get_db().collection(USERS).where(filter=FieldFilter("companyId", "==", company_id))
    if role:
        q = q.where(filter=FieldFilter("role", "==", role))
    return [{**(doc.to_dict() or {}), "id": doc.id} async for doc in q.stream()]
