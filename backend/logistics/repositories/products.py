# logistics/repositories/products.py
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core.constants import PRODUCTS

COL = PRODUCTS


async def create(data: Dict[str, Any]) -> str:
    ref = get_db().collection(COL).document()
    await ref.set({**data, "createdAt": SERVER_TIMESTAMP, "lastUpdated": SERVER_TIMESTAMP})
    return ref.id


async def get(product_id: str) -> Optional[Dict[str, Any]]:
    snap = await get_db().collection(COL).document(product_id).get()
    return {**(snap.to_dict() or {}), "id": snap.id} if snap.exists else None


async def list_by_company(company_id: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
    q = get_db().collection(COL).where(filter=FieldFilter("companyId", "==", company_id))
    if category:
        q = q.where(filter=FieldFilter("mainCategory", "==", category))
    return [{**(doc.to_dict() or {}), "id": doc.id} async for doc in q.stream()]


async def update(product_id: str, data: Dict[str, Any]) -> None:
    await get_db().collection(COL).document(product_id).update({**data, "lastUpdated": SERVER_TIMESTAMP})


async def delete(product_id: str) -> None:
    await get_db().collection(COL).document(product_id).delete()
