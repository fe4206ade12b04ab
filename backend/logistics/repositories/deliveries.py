# logistics/repositories/deliveries.py
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core.constants import DELIVERIES

COL = DELIVERIES


async def create(data: Dict[str, Any]) -> str:
    ref = get_db().collection(COL).document()
    await ref.set({**data, "createdAt": SERVER_TIMESTAMP, "updatedAt": SERVER_TIMESTAMP})
    return ref.id


async def get(delivery_id: str) -> Optional[Dict[str, Any]]:
    snap = await get_db().collection(COL).document(delivery_id).get()
    return {**(snap.to_dict() or {}), "id": snap.id} if snap.exists else None


async def update(delivery_id: str, data: Dict[str, Any]) -> None:
    await get_db().collection(COL).document(delivery_id).update({**data, "updatedAt": SERVER_TIMESTAMP})


async def list_where(**filters: Any) -> List[Dict[str, Any]]:
    """list_where(companyId=..., driverId=...) → equality filters combined."""
    q = get_db().collection(COL)
    for field, value in filters.items():
        q = q.where(filter=FieldFilter(field, "==", value))
    return [{**(doc.to_dict() or {}), "id": doc.id} async for doc in q.stream()]
