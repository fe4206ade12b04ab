"""
# `logistics/routers/deliveries.py`: Deliveries

### GET /deliveries
- admin: any company (`company_id`)
- operator: own company
- driver: deliveries assigned to them
- customer: their own deliveries

### POST /deliveries  (admin, operator)
Creates a `pending` delivery for a customer of the company.

### POST /deliveries/{id}/assign  (admin, operator)
`pending → assigned` with the given driver (must be a driver of the same
company). Reassigning an `assigned` delivery only swaps the driver.

### POST /deliveries/{id}/status  (admin, operator, driver)
`assigned → picked_up → in_transit → delivered`, `cancelled` from
pending/assigned. Drivers may only move their own deliveries and cannot
cancel. On `delivered` the driver's earnings are fixed.

Invalid transitions → 409.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from logistics.config import settings
from logistics.core import constants as C
from logistics.core.security import get_company_staff, require_workspace
from logistics.repositories import activities
from logistics.repositories import deliveries as repo
from logistics.repositories import members as member_repo
from logistics.schemas.delivery import DeliveryAssign, DeliveryCreate, DeliveryOut, DeliveryStatusUpdate
from logistics.schemas.workspace import WorkspaceContext
from logistics.services import deliveries as delivery_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])

_readers = require_workspace(C.ROLE_ADMIN, C.ROLE_OPERATOR, C.ROLE_DRIVER, C.ROLE_CUSTOMER)
_status_writers = require_workspace(C.ROLE_ADMIN, C.ROLE_OPERATOR, C.ROLE_DRIVER)


async def _load(delivery_id: str, context: WorkspaceContext) -> dict:
    delivery = await repo.get(delivery_id)
    if delivery is None:
        raise HTTPException(status_code=404, detail="Delivery not found")
    if context.role != C.ROLE_ADMIN and delivery.get("companyId") != context.company_id:
        raise HTTPException(status_code=404, detail="Delivery not found")
    return delivery


def _log_status(context: WorkspaceContext, delivery: dict, action: str, **metadata):
    return activities.log(
        action, "delivery", delivery.get("companyId", ""),
        context.principal.uid, context.principal.email,
        {"deliveryId": delivery["id"], **metadata},
    )


@router.get("", response_model=List[DeliveryOut])
async def list_deliveries(
    status_filter: Optional[str] = Query(None, alias="status"),
    company_id: Optional[str] = Query(None, description="Admins only"),
    context: WorkspaceContext = Depends(_readers),
):
    filters = {}
    if context.role == C.ROLE_ADMIN:
        if not company_id:
            raise HTTPException(status_code=422, detail="company_id is required")
        filters["companyId"] = company_id
    else:
        filters["companyId"] = context.company_id
    if context.role == C.ROLE_DRIVER:
        filters["driverId"] = context.principal.uid
    elif context.role == C.ROLE_CUSTOMER:
        filters["customerId"] = context.principal.uid
    if status_filter:
        filters["status"] = status_filter
    return [delivery_service.to_delivery_out(d) for d in await repo.list_where(**filters)]


@router.post("", response_model=DeliveryOut, status_code=status.HTTP_201_CREATED)
async def create_delivery(payload: DeliveryCreate, context: WorkspaceContext = Depends(get_company_staff)):
    if context.role == C.ROLE_ADMIN:
        if not payload.company_id:
            raise HTTPException(status_code=422, detail="company_id is required")
        company_id = payload.company_id
    else:
        company_id = context.company_id

    data = {
        "companyId": company_id,
        "customerId": payload.customer_id,
        "customerName": payload.customer_name,
        "deliveryAddress": payload.delivery_address,
        "items": [item.model_dump() for item in payload.items],
        "deliveryFee": payload.delivery_fee,
        "scheduledDate": payload.scheduled_date,
        "note": payload.note,
        "status": "pending",
        "driverId": None,
        "createdBy": context.principal.uid,
    }
    delivery_id = await repo.create(data)
    created = {**data, "id": delivery_id}
    await _log_status(context, created, "DELIVERY_CREATED", customerId=payload.customer_id)
    return delivery_service.to_delivery_out(created)


@router.post("/{delivery_id}/assign", response_model=DeliveryOut)
async def assign_driver(
    delivery_id: str,
    payload: DeliveryAssign,
    context: WorkspaceContext = Depends(get_company_staff),
):
    delivery = await _load(delivery_id, context)
    driver = await member_repo.get_profile(payload.driver_id)
    if driver is None or driver.get("role") != C.ROLE_DRIVER or driver.get("companyId") != delivery.get("companyId"):
        raise HTTPException(status_code=422, detail="Driver not found in this company")

    try:
        patch = delivery_service.assign_patch(delivery, payload.driver_id)
    except delivery_service.InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Invalid status change: {exc}")
    await repo.update(delivery_id, patch)
    await _log_status(context, delivery, "DELIVERY_ASSIGNED", driverId=payload.driver_id)
    return delivery_service.to_delivery_out({**delivery, **patch})


@router.post("/{delivery_id}/status", response_model=DeliveryOut)
async def update_status(
    delivery_id: str,
    payload: DeliveryStatusUpdate,
    context: WorkspaceContext = Depends(_status_writers),
):
    delivery = await _load(delivery_id, context)
    if context.role == C.ROLE_DRIVER:
        if delivery.get("driverId") != context.principal.uid:
            raise HTTPException(status_code=403, detail="Not your delivery")
        if payload.status == "cancelled":
            raise HTTPException(status_code=403, detail="Drivers cannot cancel deliveries")
    if payload.status == "assigned":
        raise HTTPException(status_code=422, detail="Use /assign to assign a driver")

    try:
        patch = delivery_service.status_patch(delivery, payload.status, settings.default_delivery_fee)
    except delivery_service.InvalidTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Invalid status change: {exc}")
    await repo.update(delivery_id, patch)
    await _log_status(context, delivery, f"DELIVERY_{payload.status.upper()}")
    logger.info("Delivery %s → %s", delivery_id, payload.status)
    return delivery_service.to_delivery_out({**delivery, **patch})
