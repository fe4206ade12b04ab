# logistics/repositories/activities.py
from typing import Any, Dict, List, Optional

from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core.constants import ACTIVITIES

COL = ACTIVITIES


async def log(
    action: str,
    target_type: str,
    company_id: str,
    performed_by_id: Optional[str],
    performed_by_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    await get_db().collection(COL).add({
        "action": action,
        "targetType": target_type,
        "companyId": company_id,
        "performedById": performed_by_id,
        "performedByEmail": performed_by_email,
        "metadata": metadata or {},
        "timestamp": SERVER_TIMESTAMP,
    })


async def list_for_company(company_id: str, limit: int = 100) -> List[Dict[str, Any]]:
    q = (
        get_db().collection(COL)
        .where(filter=FieldFilter("companyId", "==", company_id))
        .order_by("timestamp", direction=gcf.Query.DESCENDING)
        .limit(limit)
    )
    return [{**(doc.to_dict() or {}), "id": doc.id} async for doc in q.stream()]
