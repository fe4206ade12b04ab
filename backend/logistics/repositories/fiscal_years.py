# logistics/repositories/fiscal_years.py
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from logistics.config import get_db
from logistics.core.constants import FINANCIAL_YEARS, USERS

COL = FINANCIAL_YEARS


async def get(fy_id: str) -> Optional[Dict[str, Any]]:
    snap = await get_db().collection(COL).document(fy_id).get()
    return {**(snap.to_dict() or {}), "id": snap.id} if snap.exists else None


async def list_all() -> List[Dict[str, Any]]:
    return [{**(doc.to_dict() or {}), "id": doc.id} async for doc in get_db().collection(COL).stream()]


async def create(fy_id: str, start_date: str, end_date: str, created_by: str) -> None:
    """Raises google.api_core.exceptions.AlreadyExists when the year is already set up."""
    await get_db().collection(COL).document(fy_id).create({
        "startDate": start_date,
        "endDate": end_date,
        "createdBy": created_by,
        "status": "active",
        "createdAt": SERVER_TIMESTAMP,
    })


async def set_current(uid: str, fy_id: str) -> None:
    await get_db().collection(USERS).document(uid).set({"current_fy": fy_id}, merge=True)
