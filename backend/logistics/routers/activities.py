# logistics/routers/activities.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from logistics.core import constants as C
from logistics.core.security import get_company_staff
from logistics.repositories import activities as repo
from logistics.schemas.activity import ActivityOut
from logistics.schemas.workspace import WorkspaceContext

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", response_model=List[ActivityOut])
async def list_activities(
    company_id: Optional[str] = Query(None, description="Admins only"),
    limit: int = Query(100, ge=1, le=500),
    context: WorkspaceContext = Depends(get_company_staff),
):
    """Newest first."""
    if context.role == C.ROLE_ADMIN:
        if not company_id:
            raise HTTPException(status_code=422, detail="company_id is required")
        scope = company_id
    else:
        scope = context.company_id
    return [
        ActivityOut(
            id=a["id"],
            action=a.get("action", ""),
            target_type=a.get("targetType", ""),
            company_id=a.get("companyId", ""),
            performed_by_id=a.get("performedById"),
            performed_by_email=a.get("performedByEmail"),
            metadata=a.get("metadata") or {},
            timestamp=a.get("timestamp"),
        )
        for a in await repo.list_for_company(scope, limit)
    ]
